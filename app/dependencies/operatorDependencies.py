"""
Contexto del operador de caja.

La autenticación vive fuera de este servicio: el gateway entrega la identidad
del operador en los headers X-User-ID y X-User-Role.
"""
from typing import Optional
from uuid import UUID
from fastapi import Depends, Header, HTTPException, status
from pydantic import BaseModel

from app.core.config import settings


class OperatorContext(BaseModel):
    user_id: UUID
    user_role: Optional[str] = None


class OperatorDependencies:
    """Dependencias reutilizables para identificar al operador."""

    @staticmethod
    def get_operator(
        x_user_id: Optional[str] = Header(None, alias="X-User-ID"),
        x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
    ) -> OperatorContext:
        if not x_user_id:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Falta el header X-User-ID"
            )
        try:
            user_id = UUID(x_user_id)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="X-User-ID debe ser un UUID válido"
            )
        role = x_user_role.strip().lower() if x_user_role else None
        return OperatorContext(user_id=user_id, user_role=role)

    @staticmethod
    def require_role(allowed_roles: list[str]):
        """
        Dependencia para requerir roles específicos.
        """
        def role_checker(operator: OperatorContext = Depends(OperatorDependencies.get_operator)):
            if operator.user_role not in allowed_roles:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Se requiere uno de estos roles: {', '.join(allowed_roles)}"
                )
            return operator
        return role_checker

    @staticmethod
    def require_movement_delete():
        """Borrar movimientos es una acción privilegiada."""
        return OperatorDependencies.require_role(settings.MOVEMENT_DELETE_ROLES)
