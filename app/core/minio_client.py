from minio import Minio
from minio.error import S3Error

from app.core.config import settings
from app.core.errors import MissingCredentialsError, StorageError


def _missing_settings() -> list[str]:
    required = {
        "MINIO_ENDPOINT": settings.MINIO_ENDPOINT,
        "MINIO_ACCESS_KEY": settings.MINIO_ACCESS_KEY,
        "MINIO_SECRET_KEY": settings.MINIO_SECRET_KEY,
        "MINIO_BUCKET_CERTIFICATES": settings.MINIO_BUCKET_CERTIFICATES,
    }
    return [name for name, value in required.items() if not (value or "").strip()]


def get_minio() -> Minio:
    missing = _missing_settings()
    if missing:
        raise MissingCredentialsError(missing)

    return Minio(
        endpoint=settings.MINIO_ENDPOINT.strip(),
        access_key=settings.MINIO_ACCESS_KEY.strip(),
        secret_key=settings.MINIO_SECRET_KEY.strip(),
        secure=settings.MINIO_SECURE,  # keep false for http
    )


def ensure_bucket(minio: Minio, bucket: str) -> None:
    try:
        if not minio.bucket_exists(bucket):
            minio.make_bucket(bucket)
    except S3Error as e:
        raise StorageError(f"MinIO bucket ensure failed: {e}") from e


def public_object_url(bucket: str, object_name: str) -> str:
    base = (settings.MINIO_PUBLIC_URL or "").rstrip("/")
    if not base:
        scheme = "https" if settings.MINIO_SECURE else "http"
        base = f"{scheme}://{(settings.MINIO_ENDPOINT or '').strip()}"
    return f"{base}/{bucket}/{object_name}"
