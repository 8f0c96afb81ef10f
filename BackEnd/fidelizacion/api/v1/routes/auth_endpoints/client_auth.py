"""
Módulo de autenticación de clientes.

Registro y login de los clientes del restaurante desde la experiencia AR.
Los clientes no tienen verificación en dos pasos: el login entrega
directamente el token final con rol "Cliente", válido por 7 días.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fidelizacion.core.security import ConflictError, InvalidCredentialsError, UserAlreadyExistsError
from fidelizacion.db.database import get_db
from fidelizacion.models.models import CuentaCliente
from fidelizacion.schemas.auth_schemas import LoginRequest, TokenResponse
from fidelizacion.schemas.client_schemas import (
    ClientAccountResponse, ClientProfileResponse, ClientRegisterRequest
)
from fidelizacion.services.auth_service import ClientAuthService, get_current_client_account

router = APIRouter(prefix="/api/client-auth", tags=["client-auth"])
logger = logging.getLogger(__name__)


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register_client(data: ClientRegisterRequest, db: Session = Depends(get_db)):
    """
    Crear perfil de cliente + cuenta de acceso.

    Raises:
        HTTPException 409: Email o teléfono ya registrado
        HTTPException 500: Error del servidor
    """
    try:
        cuenta = ClientAuthService.register(data, db)
        return {
            "message": "¡Cuenta creada con éxito!",
            "user": ClientAccountResponse.model_validate(cuenta).model_dump(mode="json"),
        }

    except (UserAlreadyExistsError, ConflictError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    except SQLAlchemyError as e:
        logger.exception(f"Error en el registro de cliente: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Ocurrió un error en el servidor."
        )


@router.post("/login", response_model=TokenResponse)
def login_client(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Login de cliente. 401 con mensaje genérico si falla."""
    try:
        token = ClientAuthService.login(credentials.email, credentials.password, db)
        return TokenResponse(token=token)

    except InvalidCredentialsError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Credenciales inválidas"
        )


@router.get("/me", response_model=ClientProfileResponse)
def get_client_profile(cuenta: CuentaCliente = Depends(get_current_client_account)):
    return ClientAuthService.get_profile(cuenta)
