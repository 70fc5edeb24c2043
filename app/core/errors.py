"""
Exceptions raised by the constancias issuance pipeline.

Registry failures are tagged with a RegistryErrorKind and carry the data
that caused them, so callers branch on the type, never on the message.
"""

from enum import Enum


class ConstanciaError(Exception):
    """Base class for every issuance error."""


class EmptyBatchError(ConstanciaError):
    """A batch was submitted without records."""

    def __init__(self, message: str = "No hay constancias para procesar"):
        super().__init__(message)


class CounterUnavailableError(ConstanciaError):
    """The CUV counter could not be read; the batch cannot start."""


class RenderError(ConstanciaError):
    """The PDF renderer failed."""


class InvalidCurpError(ConstanciaError):
    """A CURP was given but is not 18 characters long."""

    def __init__(self, curp: str):
        self.curp = curp
        super().__init__(f"CURP inválida (se esperan 18 caracteres, se recibieron {len(curp)}): {curp}")


# ── Artifact store ──────────────────────────────────────────────────────

class StorageError(ConstanciaError):
    """Upload to the object store failed."""


class EmptyPayloadError(StorageError):
    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(f"El archivo está vacío: {filename}")


class MissingCredentialsError(StorageError):
    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Faltan variables de entorno: {', '.join(missing)}")


# ── Registry ────────────────────────────────────────────────────────────

class RegistryErrorKind(str, Enum):
    MISSING_FIELDS = "MISSING_FIELDS"
    DUPLICATE_COURSE = "DUPLICATE_COURSE"
    DUPLICATE_CODE = "DUPLICATE_CODE"
    OTHER = "OTHER"


class RegistryError(ConstanciaError):
    kind: RegistryErrorKind = RegistryErrorKind.OTHER


class MissingFieldsError(RegistryError):
    kind = RegistryErrorKind.MISSING_FIELDS

    def __init__(self, fields: list[str]):
        self.fields = list(fields)
        super().__init__(f"Campos requeridos faltantes: {', '.join(self.fields)}")


class DuplicateCourseError(RegistryError):
    kind = RegistryErrorKind.DUPLICATE_COURSE

    def __init__(self, alumno_id: int, course: str):
        self.alumno_id = alumno_id
        self.course = course
        super().__init__(f'El alumno ya tiene una constancia del curso "{course}"')


class DuplicateCodeError(RegistryError):
    kind = RegistryErrorKind.DUPLICATE_CODE

    def __init__(self, cuv: str):
        self.cuv = cuv
        super().__init__(f"Ya existe una constancia con el CUV {cuv}")
