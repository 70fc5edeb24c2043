from typing import Any, Optional

from pydantic import BaseModel, field_validator


class CertificateData(BaseModel):
    """
    One certificate to issue. nombre/curso/horas/curp are only checked by the
    pipeline so that a bulk roster with a bad row is rejected per record,
    not as a whole.
    """

    nombre: Optional[str] = None
    curso: Optional[str] = None
    horas: Optional[int] = None

    matricula: Optional[str] = None
    curp: Optional[str] = None

    start_date: Optional[str] = None
    end_date: Optional[str] = None
    emision: Optional[str] = None       # issue date
    vencimiento: Optional[str] = None   # expiry date

    cuv: Optional[str] = None
    qr_code_data_url: Optional[str] = None

    # blank spreadsheet cells arrive as "" -> None
    @field_validator("curp", mode="before")
    @classmethod
    def _normalize_curp(cls, v: Any):
        if v is None:
            return None
        v = str(v).strip().upper()
        return v or None


class CertificateUploadResult(BaseModel):
    nombre: Optional[str]
    success: bool
    url: Optional[str] = None
    error: Optional[str] = None


class UploadOutcome(BaseModel):
    filename: str
    success: bool
    url: Optional[str] = None
    error: Optional[str] = None


class IssueResponse(BaseModel):
    url: str


class CertificatePayload(BaseModel):
    """Registry insert payload; completeness is checked by the registry."""

    alumno_id: Optional[int] = None
    curso: Optional[str] = None
    cuv: Optional[str] = None
    emision: Optional[str] = None
    vencimiento: Optional[str] = None
    horas: Optional[int] = None
    url_certificado: Optional[str] = None


class RegisteredCertificate(BaseModel):
    id: int


class CertificateOut(BaseModel):
    constancia_id: int
    cuv: str
    curso: str
    emision: str
    vencimiento: str
    horas: int
    url_certificado: str
    alumno_nombre: Optional[str] = None
    matricula: Optional[str] = None

    model_config = {"from_attributes": True}
