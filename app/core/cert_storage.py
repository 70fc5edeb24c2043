# app/core/cert_storage.py

import logging
from io import BytesIO

import anyio
from minio.error import S3Error

from app.core.config import settings
from app.core.errors import EmptyPayloadError, StorageError
from app.core.minio_client import ensure_bucket, get_minio, public_object_url
from app.schemas.certificate import UploadOutcome

logger = logging.getLogger(__name__)


def _put_pdf(pdf_bytes: bytes, filename: str) -> str:
    minio = get_minio()
    bucket = settings.MINIO_BUCKET_CERTIFICATES
    ensure_bucket(minio, bucket)

    try:
        minio.put_object(
            bucket_name=bucket,
            object_name=filename,
            data=BytesIO(pdf_bytes),
            length=len(pdf_bytes),
            content_type="application/pdf",
        )
    except S3Error as e:
        raise StorageError(f"MinIO put_object failed: {e}") from e

    return public_object_url(bucket, filename)


async def upload_certificate_pdf(pdf_bytes: bytes, filename: str) -> dict:
    """
    Uploads one PDF and returns {"url": <public url>}.

    Raises EmptyPayloadError, MissingCredentialsError or StorageError.
    """
    if not pdf_bytes:
        raise EmptyPayloadError(filename)

    # MinIO SDK is sync
    url = await anyio.to_thread.run_sync(_put_pdf, pdf_bytes, filename)
    return {"url": url}


async def upload_certificate_batch(files: list[tuple[bytes, str]]) -> list[UploadOutcome]:
    """
    Uploads (pdf_bytes, filename) pairs one after the other.
    Every pair gets an outcome; a failed upload never stops the rest.
    """
    results: list[UploadOutcome] = []

    for pdf_bytes, filename in files:
        try:
            uploaded = await upload_certificate_pdf(pdf_bytes, filename)
            results.append(UploadOutcome(filename=filename, success=True, url=uploaded["url"]))
        except Exception as e:
            logger.error("Upload of %s failed: %s", filename, e)
            results.append(
                UploadOutcome(filename=filename, success=False, error=str(e) or "Error desconocido")
            )

    return results
