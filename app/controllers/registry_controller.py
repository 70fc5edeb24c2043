# app/controllers/registry_controller.py
"""
Relational registry: students (alumnos) and their certificates (constancias).

Constraint checks run before every insert and raise tagged RegistryError
subclasses. A unique violation that still slips through (another writer
committed in between) is reclassified with the same checks.
"""

import logging
from typing import Optional

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import (
    CounterUnavailableError,
    DuplicateCodeError,
    DuplicateCourseError,
    MissingFieldsError,
    RegistryError,
)
from app.core.spanish_dates import normalize_db_date
from app.models.alumno import Alumno
from app.models.constancia import Constancia
from app.schemas.certificate import CertificatePayload, RegisteredCertificate
from app.schemas.student import CreateStudentResult

logger = logging.getLogger(__name__)

REQUIRED_CERTIFICATE_FIELDS = (
    "alumno_id",
    "curso",
    "cuv",
    "emision",
    "vencimiento",
    "horas",
    "url_certificado",
)


def _clean(v: Optional[str]) -> str:
    return (v or "").strip().upper()


# ─────────────────────────────────────────────────────────────
# COUNTER
# ─────────────────────────────────────────────────────────────

async def get_next_increment(db: AsyncSession) -> int:
    """
    Next constancia_id the sequence will hand out, read without consuming it.
    """
    stmt = text(
        "SELECT pg_sequence_last_value("
        "pg_get_serial_sequence('constancias', 'constancia_id')::regclass)"
    )
    try:
        last_value = (await db.execute(stmt)).scalar()
    except SQLAlchemyError as e:
        raise CounterUnavailableError(f"No se pudo leer el contador de constancias: {e}") from e

    return int(last_value or 0) + 1


# ─────────────────────────────────────────────────────────────
# STUDENTS
# ─────────────────────────────────────────────────────────────

async def create_or_get_student(
    db: AsyncSession,
    matricula: Optional[str],
    curp: Optional[str],
    nombre_completo: Optional[str],
) -> CreateStudentResult:
    missing = [
        name
        for name, value in (("matricula", matricula), ("curp", curp), ("nombre_completo", nombre_completo))
        if not (value or "").strip()
    ]
    if missing:
        raise MissingFieldsError(missing)

    clean_matricula = _clean(matricula)
    clean_curp = _clean(curp)
    clean_nombre = _clean(nombre_completo)

    existing = (
        await db.execute(select(Alumno).where(Alumno.matricula == clean_matricula))
    ).scalar_one_or_none()

    if existing:
        return CreateStudentResult(
            alumno_id=existing.alumno_id,
            matricula=clean_matricula,
            curp=clean_curp,
            nombre_completo=clean_nombre,
            created=False,
        )

    alumno = Alumno(
        matricula=clean_matricula,
        curp=clean_curp,
        nombre_completo=clean_nombre,
        password=clean_matricula,
    )
    db.add(alumno)
    await db.commit()
    await db.refresh(alumno)

    logger.info("Alumno %s created (id=%s)", clean_matricula, alumno.alumno_id)
    return CreateStudentResult(
        alumno_id=alumno.alumno_id,
        matricula=clean_matricula,
        curp=clean_curp,
        nombre_completo=clean_nombre,
        created=True,
    )


# ─────────────────────────────────────────────────────────────
# CERTIFICATES
# ─────────────────────────────────────────────────────────────

async def _check_constraints(db: AsyncSession, alumno_id: int, curso: str, cuv: str) -> None:
    same_course = (
        await db.execute(
            select(Constancia.constancia_id).where(
                Constancia.alumno_id == alumno_id,
                Constancia.curso == curso,
            )
        )
    ).first()
    if same_course:
        raise DuplicateCourseError(alumno_id, curso)

    same_cuv = (
        await db.execute(select(Constancia.constancia_id).where(Constancia.cuv == cuv))
    ).first()
    if same_cuv:
        raise DuplicateCodeError(cuv)


async def register_certificate(db: AsyncSession, payload: CertificatePayload) -> RegisteredCertificate:
    missing = [k for k in REQUIRED_CERTIFICATE_FIELDS if not getattr(payload, k)]
    if missing:
        raise MissingFieldsError(missing)

    curso = _clean(payload.curso)
    cuv = payload.cuv.strip()

    await _check_constraints(db, payload.alumno_id, curso, cuv)

    cert = Constancia(
        alumno_id=payload.alumno_id,
        curso=curso,
        cuv=cuv,
        emision=normalize_db_date(payload.emision),
        vencimiento=normalize_db_date(payload.vencimiento),
        horas=payload.horas,
        url_certificado=payload.url_certificado,
    )
    db.add(cert)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        await _check_constraints(db, payload.alumno_id, curso, cuv)
        raise RegistryError(f"No se pudo registrar la constancia {cuv}: {e.orig}") from e

    await db.refresh(cert)
    logger.info("Constancia %s registered (id=%s)", cuv, cert.constancia_id)
    return RegisteredCertificate(id=cert.constancia_id)


async def find_certificate_by_cuv(db: AsyncSession, cuv: str) -> Optional[Constancia]:
    stmt = (
        select(Constancia)
        .options(selectinload(Constancia.alumno))
        .where(Constancia.cuv == cuv.strip())
    )
    return (await db.execute(stmt)).scalar_one_or_none()
