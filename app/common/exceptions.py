"""
Errores de dominio del motor de caja.

Son subclases de HTTPException: los servicios los lanzan y FastAPI los
convierte en la respuesta HTTP correspondiente sin handlers adicionales.
"""
from fastapi import HTTPException, status


class CajaError(HTTPException):
    """Base de los errores de dominio"""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


class NotFoundError(CajaError):
    """Sesión, movimiento o registro de catálogo inexistente"""
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(CajaError):
    """Ya existe una caja abierta para la sucursal"""
    status_code = status.HTTP_409_CONFLICT


class InvalidStateError(CajaError):
    """Operación sobre una caja que no está abierta"""
    status_code = status.HTTP_409_CONFLICT


class ValidationError(CajaError):
    """Monto no positivo, catálogo desconocido o datos de cierre faltantes"""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
