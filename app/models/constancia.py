from __future__ import annotations

from typing import TYPE_CHECKING
from datetime import datetime

from sqlalchemy import String, Integer, DateTime, ForeignKey, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

if TYPE_CHECKING:
    from app.models.alumno import Alumno


class Constancia(Base):
    __tablename__ = "constancias"
    __table_args__ = (
        UniqueConstraint("alumno_id", "curso", name="uq_constancias_alumno_curso"),
        UniqueConstraint("cuv", name="uq_constancias_cuv"),
    )

    # its sequence feeds the SEQ segment of every CUV
    constancia_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    alumno_id: Mapped[int] = mapped_column(ForeignKey("alumnos.alumno_id"), nullable=False, index=True)
    curso: Mapped[str] = mapped_column(String(255), nullable=False)
    cuv: Mapped[str] = mapped_column(String(64), nullable=False)

    # YYYY-MM-DD, or the raw text when the source date could not be parsed
    emision: Mapped[str] = mapped_column(String(64), nullable=False)
    vencimiento: Mapped[str] = mapped_column(String(64), nullable=False)

    horas: Mapped[int] = mapped_column(Integer, nullable=False)
    url_certificado: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    alumno: Mapped["Alumno"] = relationship("Alumno", back_populates="constancias")
