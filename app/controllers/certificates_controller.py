# app/controllers/certificates_controller.py
"""
Certificate issuance: CUV -> QR -> PDF -> MinIO -> registry.

A batch walks the stages strictly one after the other, each stage finishing
for every record before the next starts:

  1) validate      bad rows fail on their own, never the batch
  2) CUV           counter read ONCE, offset = input index
  3) QR            concurrent, a failed QR only means "no QR"
  4) render        one renderer call for the whole batch (failure = abort)
  5) upload        one outcome per file
  6) register      SEQUENTIAL, in input order (see _register_sequentially)
  7) report        one result per input record, input order
"""

import logging
import re
from typing import Optional

import anyio
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cert_pdf import CertificateRenderer
from app.core.cert_qr import make_qr_data_url
from app.core.cert_storage import upload_certificate_batch, upload_certificate_pdf
from app.core.config import settings
from app.core.cuv import allocate_cuv
from app.core.errors import (
    DuplicateCodeError,
    DuplicateCourseError,
    EmptyBatchError,
    InvalidCurpError,
    MissingFieldsError,
)
from app.core.spanish_dates import normalize_db_date
from app.controllers.registry_controller import (
    create_or_get_student,
    get_next_increment,
    register_certificate,
)
from app.schemas.certificate import (
    CertificateData,
    CertificatePayload,
    CertificateUploadResult,
    UploadOutcome,
)

logger = logging.getLogger(__name__)

CURP_LENGTH = 18


# ─────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────

def certificate_filename(data: CertificateData) -> str:
    """constancia-<Nombre-Con-Guiones>-<CUV>.pdf"""
    safe_name = re.sub(r"\s+", "-", (data.nombre or "").strip())
    safe_cuv = f"-{data.cuv}" if data.cuv else ""
    return f"constancia-{safe_name}{safe_cuv}.pdf"


def verification_url(data: CertificateData) -> str:
    # Built from CERT_QR_BASE_URL, not from the URL the store returns later
    return f"{settings.CERT_QR_BASE_URL.rstrip('/')}/{certificate_filename(data)}"


def missing_required_fields(data: CertificateData) -> list[str]:
    missing = []
    if not (data.nombre or "").strip():
        missing.append("nombre")
    if not (data.curso or "").strip():
        missing.append("curso")
    if not data.horas or data.horas <= 0:
        missing.append("horas")
    return missing


def validate_record(data: CertificateData) -> None:
    """Raises MissingFieldsError / InvalidCurpError for a record that cannot be issued."""
    missing = missing_required_fields(data)
    if missing:
        raise MissingFieldsError(missing)
    # CURP is optional, but when given it must be complete
    if data.curp and len(data.curp) != CURP_LENGTH:
        raise InvalidCurpError(data.curp)


async def attach_qr_code(data: CertificateData) -> CertificateData:
    """Returns a copy carrying the QR; on failure the record goes on without it."""
    url = verification_url(data)
    try:
        qr = await anyio.to_thread.run_sync(make_qr_data_url, url)
    except Exception as e:
        logger.warning("QR generation failed for %s, continuing without QR: %s", data.cuv, e)
        return data
    return data.model_copy(update={"qr_code_data_url": qr})


async def _attach_qr_codes(certs: list[CertificateData]) -> list[CertificateData]:
    results: list[Optional[CertificateData]] = [None] * len(certs)

    async def _one(i: int, data: CertificateData) -> None:
        results[i] = await attach_qr_code(data)

    async with anyio.create_task_group() as tg:
        for i, data in enumerate(certs):
            tg.start_soon(_one, i, data)

    return results


async def ensure_cuv(
    db: AsyncSession,
    data: CertificateData,
    base_increment: Optional[int] = None,
    offset: int = 0,
) -> CertificateData:
    if data.cuv:
        return data
    if base_increment is None:
        base_increment = await get_next_increment(db)
    return data.model_copy(update={"cuv": allocate_cuv(base_increment, offset, data)})


async def register_in_database(db: AsyncSession, data: CertificateData, url: str) -> bool:
    """
    Student read-or-create + certificate insert.

    Never raises: the PDF is already public at this point. Duplicate
    course / CUV conflicts are expected on re-runs and only warned about.
    Returns True when the certificate row was written.
    """
    try:
        student = await create_or_get_student(db, data.matricula, data.curp, data.nombre)
        today = normalize_db_date(None)
        await register_certificate(
            db,
            CertificatePayload(
                alumno_id=student.alumno_id,
                curso=data.curso,
                cuv=data.cuv,
                emision=data.emision or today,
                vencimiento=data.vencimiento or today,
                horas=data.horas,
                url_certificado=url,
            ),
        )
        return True
    except DuplicateCourseError as e:
        logger.warning("Constancia duplicada (alumno %s, curso %s): skipped", e.alumno_id, e.course)
    except DuplicateCodeError as e:
        logger.warning("CUV duplicado %s: skipped", e.cuv)
    except Exception as e:
        logger.critical("Error registrando constancia %s en DB: %s", data.cuv, e, exc_info=True)
        await db.rollback()
    return False


async def _register_sequentially(
    db: AsyncSession,
    prepared: list[tuple[int, CertificateData]],
    uploads: list[UploadOutcome],
) -> None:
    # MUST stay a plain sequential loop. Registering concurrently lets two
    # certificates of the same student race on the alumno / (alumno, curso)
    # unique constraints and silently lose rows. Do not gather() this.
    for (_, data), outcome in zip(prepared, uploads):
        if outcome.success and outcome.url:
            await register_in_database(db, data, outcome.url)


# ─────────────────────────────────────────────────────────────
# Actions
# ─────────────────────────────────────────────────────────────

async def generate_and_upload(
    db: AsyncSession,
    data: CertificateData,
    *,
    renderer: CertificateRenderer,
) -> dict:
    """
    Issues ONE certificate and returns {"url": ...}.
    Registry failures are logged, not raised.
    """
    validate_record(data)

    cert = await ensure_cuv(db, data)
    cert_with_qr = await attach_qr_code(cert)

    pdf_bytes = await anyio.to_thread.run_sync(renderer.render, cert_with_qr)
    filename = certificate_filename(cert_with_qr)

    uploaded = await upload_certificate_pdf(pdf_bytes, filename)
    logger.info("Constancia %s uploaded as %s", cert.cuv, filename)

    await register_in_database(db, cert, uploaded["url"])
    return {"url": uploaded["url"]}


async def generate_and_upload_bulk(
    db: AsyncSession,
    certs: list[CertificateData],
    *,
    renderer: CertificateRenderer,
) -> list[CertificateUploadResult]:
    """
    Issues every certificate of a batch; one result per input record, in
    input order. Only an empty batch, the counter read or the renderer can
    fail the whole call.
    """
    if not certs:
        raise EmptyBatchError()

    # 1) validation: rejected rows are reported, not processed
    rejected: dict[int, str] = {}
    valid: list[tuple[int, CertificateData]] = []
    for i, data in enumerate(certs):
        try:
            validate_record(data)
        except (MissingFieldsError, InvalidCurpError) as e:
            logger.warning("Row %d rejected: %s", i, e)
            rejected[i] = str(e)
        else:
            valid.append((i, data))

    uploads_by_index: dict[int, UploadOutcome] = {}

    if valid:
        # 2) CUVs: one counter read, offsets by input position
        base_increment = await get_next_increment(db)
        with_cuv = [(i, await ensure_cuv(db, data, base_increment, i)) for i, data in valid]
        logger.info("Batch of %d: CUV counter base %d", len(certs), base_increment)

        # 3) QR codes
        with_qr = await _attach_qr_codes([data for _, data in with_cuv])
        prepared = [(i, data) for (i, _), data in zip(with_cuv, with_qr)]

        # 4) render (single call; RenderError aborts the batch)
        pdfs = await anyio.to_thread.run_sync(renderer.render_batch, [data for _, data in prepared])

        # 5) upload
        uploads = await upload_certificate_batch(
            [(pdf, certificate_filename(data)) for pdf, (_, data) in zip(pdfs, prepared)]
        )
        uploads_by_index = {i: outcome for (i, _), outcome in zip(prepared, uploads)}

        # 6) registry
        await _register_sequentially(db, prepared, uploads)

    # 7) report
    results: list[CertificateUploadResult] = []
    for i, data in enumerate(certs):
        outcome = uploads_by_index.get(i)
        if outcome and outcome.success and outcome.url:
            results.append(CertificateUploadResult(nombre=data.nombre, success=True, url=outcome.url))
        else:
            error = rejected.get(i) or (outcome.error if outcome else None) or "Error desconocido"
            results.append(CertificateUploadResult(nombre=data.nombre, success=False, error=error))

    ok = sum(1 for r in results if r.success)
    logger.info("Batch finished: %d issued, %d failed", ok, len(results) - ok)
    return results
