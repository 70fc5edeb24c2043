# app/routes/certificates.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cert_pdf import CertificateRenderer, get_renderer
from app.core.database import get_db
from app.core.errors import (
    CounterUnavailableError,
    DuplicateCodeError,
    DuplicateCourseError,
    EmptyBatchError,
    InvalidCurpError,
    MissingFieldsError,
    RenderError,
    StorageError,
)
from app.controllers.certificates_controller import generate_and_upload, generate_and_upload_bulk
from app.controllers.registry_controller import find_certificate_by_cuv, register_certificate
from app.schemas.certificate import (
    CertificateData,
    CertificateOut,
    CertificatePayload,
    CertificateUploadResult,
    IssueResponse,
    RegisteredCertificate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/constancias", tags=["Constancias"])


@router.post("", response_model=IssueResponse)
async def issue_certificate(
    data: CertificateData,
    db: AsyncSession = Depends(get_db),
    renderer: CertificateRenderer = Depends(get_renderer),
):
    try:
        return await generate_and_upload(db, data, renderer=renderer)
    except (MissingFieldsError, InvalidCurpError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CounterUnavailableError as e:
        logger.error("Counter unavailable: %s", e)
        raise HTTPException(status_code=503, detail="No se pudo generar el CUV")
    except RenderError as e:
        logger.error("Render failed: %s", e)
        raise HTTPException(status_code=500, detail="Error generando el PDF")
    except StorageError as e:
        logger.error("Upload failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/bulk", response_model=list[CertificateUploadResult])
async def issue_certificates_bulk(
    certs: list[CertificateData],
    db: AsyncSession = Depends(get_db),
    renderer: CertificateRenderer = Depends(get_renderer),
):
    try:
        return await generate_and_upload_bulk(db, certs, renderer=renderer)
    except EmptyBatchError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CounterUnavailableError as e:
        logger.error("Counter unavailable: %s", e)
        raise HTTPException(status_code=503, detail="No se pudieron generar los CUV")
    except RenderError as e:
        logger.error("Bulk render failed: %s", e)
        raise HTTPException(status_code=500, detail="Error generando los PDF del lote")


@router.post("/registro", response_model=RegisteredCertificate, status_code=201)
async def post_certificate(
    payload: CertificatePayload,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await register_certificate(db, payload)
    except MissingFieldsError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (DuplicateCourseError, DuplicateCodeError) as e:
        raise HTTPException(status_code=409, detail={"kind": e.kind.value, "message": str(e)})


@router.get("/{cuv}", response_model=CertificateOut)
async def get_certificate(
    cuv: str,
    db: AsyncSession = Depends(get_db),
):
    cert = await find_certificate_by_cuv(db, cuv)
    if not cert:
        raise HTTPException(status_code=404, detail="Constancia no encontrada")

    return CertificateOut(
        constancia_id=cert.constancia_id,
        cuv=cert.cuv,
        curso=cert.curso,
        emision=cert.emision,
        vencimiento=cert.vencimiento,
        horas=cert.horas,
        url_certificado=cert.url_certificado,
        alumno_nombre=cert.alumno.nombre_completo if cert.alumno else None,
        matricula=cert.alumno.matricula if cert.alumno else None,
    )
