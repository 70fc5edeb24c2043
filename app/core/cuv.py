# app/core/cuv.py
"""
CUV (clave única de verificación) allocation.

ENS-{MATRICULA[:3]}-{CURSO[:3]}-{YYYYMMDD}-{SEQ}
Example: ENS-202-MAT-20250211-041

SEQ is the only part needing coordination. A batch reads the counter once
and hands every record its own offset (0, 1, 2, ... in input order), so no
record ever re-reads the counter.
"""

import random
import re
from datetime import date
from typing import Optional

from app.core.spanish_dates import to_date
from app.schemas.certificate import CertificateData

CUV_PREFIX = "ENS"


def _matricula_segment(matricula: Optional[str]) -> str:
    digits = re.sub(r"\D", "", matricula or "")
    if len(digits) >= 3:
        return digits[:3]
    return str(random.randint(100, 999))


def _course_segment(curso: Optional[str]) -> str:
    compact = re.sub(r"\s+", "", (curso or "").strip())
    return compact[:3].upper().ljust(3, "X")


def _date_segment(end_date: Optional[str]) -> str:
    d = to_date(end_date) or date.today()
    return d.strftime("%Y%m%d")


def build_cuv(
    matricula: Optional[str],
    curso: Optional[str],
    end_date: Optional[str],
    increment: int,
) -> str:
    return "-".join(
        [
            CUV_PREFIX,
            _matricula_segment(matricula),
            _course_segment(curso),
            _date_segment(end_date),
            str(int(increment)).zfill(3),
        ]
    )


def allocate_cuv(base_counter: int, offset: int, data: CertificateData) -> str:
    """Existing CUVs are returned untouched."""
    if data.cuv:
        return data.cuv
    return build_cuv(data.matricula, data.curso, data.end_date, base_counter + offset)
