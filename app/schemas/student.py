from typing import Optional
from pydantic import BaseModel


class StudentCreate(BaseModel):
    # presence is validated by the registry (400 with the missing names)
    matricula: Optional[str] = None
    curp: Optional[str] = None
    nombre_completo: Optional[str] = None


class CreateStudentResult(BaseModel):
    alumno_id: int
    matricula: str
    curp: str
    nombre_completo: str
    created: bool

    model_config = {"from_attributes": True}
