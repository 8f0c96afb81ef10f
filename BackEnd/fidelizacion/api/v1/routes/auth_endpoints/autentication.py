"""
Módulo de autenticación del personal.

Este módulo contiene los endpoints de registro y login del panel de
administración. El login tiene dos pasos cuando la cuenta tiene activa la
autenticación de dos factores (2FA): el paso 1 entrega un token temporal y
el paso 2 lo canjea, junto con el código TOTP, por el token final.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fidelizacion.core.security import (
    InvalidCredentialsError, InvalidTokenError, InvalidTwoFactorCodeError,
    PermissionDeniedError, TokenExpiredError, UserAlreadyExistsError
)
from fidelizacion.db.database import get_db
from fidelizacion.schemas.auth_schemas import (
    LoginRequest, TokenResponse, VerifyTwoFactorLoginRequest
)
from fidelizacion.schemas.user_schemas import UserCreate
from fidelizacion.services.auth_service import AuthService


# ========================================
# 🔧 CONFIGURACIÓN
# ========================================

router = APIRouter(prefix="/api/auth", tags=["authentication"])
logger = logging.getLogger(__name__)


# ========================================
# 🔐 ENDPOINTS DE AUTENTICACIÓN
# ========================================

@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Registrar usuario del personal")
def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """
    Registrar una cuenta del personal.

    Requisitos de contraseña:
        - Mínimo 8 caracteres
        - Al menos una mayúscula, una minúscula, un número y un carácter especial

    Args:
        user_data (UserCreate): nombres, apellidos, email, password, id_rol
            (1 = Administrador, 2 = Empleado). El rol Administrador solo se
            acepta aquí mientras no exista ningún Administrador.
        db (Session): Sesión de base de datos (inyectada automáticamente)

    Returns:
        dict: {"message", "user"}

    Raises:
        HTTPException 400: Datos inválidos (ver handler de validación)
        HTTPException 403: Rol Administrador pedido cuando ya existe uno
        HTTPException 409: Email ya registrado
        HTTPException 500: Error interno del servidor
    """
    try:
        user = AuthService.register_staff(user_data, db)
        return {
            "message": "Usuario registrado exitosamente",
            "user": AuthService.to_user_info(user, db).model_dump(mode="json"),
        }

    except UserAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

    except SQLAlchemyError as e:
        logger.exception(f"Database error during register: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno del servidor durante el registro"
        )


@router.post("/login", summary="Iniciar sesión (paso 1)")
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """
    Autenticar con email y contraseña.

    Returns:
        {"token"} si la cuenta no tiene 2FA, o
        {"twoFactorRequired": true, "tempToken"} si lo tiene. El token
        temporal dura 5 minutos y no sirve para ninguna ruta protegida.

    Raises:
        HTTPException 401: Credenciales inválidas (mismo mensaje para email
            desconocido y contraseña incorrecta)
    """
    try:
        return AuthService.login(credentials.email, credentials.password, db)

    except InvalidCredentialsError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Credenciales inválidas"
        )

    except SQLAlchemyError as e:
        logger.exception(f"Database error during login: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno del servidor durante el login"
        )


@router.post("/verify-2fa", response_model=TokenResponse, summary="Iniciar sesión (paso 2)")
def verify_two_factor(data: VerifyTwoFactorLoginRequest, db: Session = Depends(get_db)):
    """
    Canjear el token temporal y el código de la app de autenticación por el
    token final.

    Raises:
        HTTPException 401: Token temporal inválido/expirado o código incorrecto
    """
    try:
        token = AuthService.verify_two_factor(data.temp_token, data.two_factor_code, db)
        return TokenResponse(token=token)

    except (InvalidTokenError, TokenExpiredError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token temporal inválido o expirado."
        )

    except InvalidTwoFactorCodeError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Código 2FA incorrecto."
        )

    except SQLAlchemyError as e:
        logger.exception(f"Database error during 2FA verification: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno del servidor"
        )
