from __future__ import annotations

from typing import List, TYPE_CHECKING
from datetime import datetime

from sqlalchemy import String, Integer, DateTime, func, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

if TYPE_CHECKING:
    from app.models.constancia import Constancia


class Alumno(Base):
    __tablename__ = "alumnos"

    __table_args__ = (
        UniqueConstraint("matricula", name="uq_alumnos_matricula"),
    )

    alumno_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    matricula: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    curp: Mapped[str] = mapped_column(String(18), nullable=False)
    nombre_completo: Mapped[str] = mapped_column(String(160), nullable=False)

    # initial password equals the matricula; students change it on first login
    password: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    constancias: Mapped[List["Constancia"]] = relationship(
        "Constancia",
        back_populates="alumno",
    )
