# app/routes/students.py

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.errors import MissingFieldsError
from app.controllers.registry_controller import create_or_get_student
from app.schemas.student import StudentCreate, CreateStudentResult


router = APIRouter(prefix="/alumnos", tags=["Alumnos"])


@router.post("", response_model=CreateStudentResult)
async def create_student(
    payload: StudentCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Creates the student, or returns the existing one for that matricula.
    201 when created, 200 when it already existed.
    """
    try:
        result = await create_or_get_student(db, payload.matricula, payload.curp, payload.nombre_completo)
    except MissingFieldsError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return JSONResponse(
        status_code=201 if result.created else 200,
        content=result.model_dump(),
    )
