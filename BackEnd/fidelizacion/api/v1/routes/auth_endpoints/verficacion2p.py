"""
Módulo de configuración de la verificación en dos pasos (2FA).

Endpoints para que un usuario del personal active, consulte y desactive la
autenticación TOTP (Google Authenticator, Authy, etc.). La activación es un
commit en dos pasos: /setup solo genera el secreto y el QR; el secreto se
guarda recién en /verify, cuando el usuario demuestra que lo capturó.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fidelizacion.db.database import get_db
from fidelizacion.models.models import Usuario
from fidelizacion.schemas.auth_schemas import (
    TwoFactorSetupResponse, TwoFactorStatusResponse, TwoFactorVerifyRequest
)
from fidelizacion.services.auth_service import TwoFactorAuthService, get_current_user


# ========================================
# 🔧 CONFIGURACIÓN
# ========================================

router = APIRouter(prefix="/api/2fa", tags=["two-factor"])
logger = logging.getLogger(__name__)


# ========================================
# 🔐 ENDPOINTS DE 2FA
# ========================================

@router.post("/setup", response_model=TwoFactorSetupResponse, response_model_by_alias=True)
def setup_2fa(current_user: Usuario = Depends(get_current_user)):
    """
    Iniciar configuración de autenticación de dos factores.

    Genera un secreto TOTP y el QR con la URI otpauth:// para escanear. No
    modifica la cuenta: llamar /setup varias veces sin /verify deja el
    estado guardado igual.

    Returns:
        TwoFactorSetupResponse:
            - secret: Cadena Base32 para entrada manual
            - qrCodeUrl: Data URL de imagen PNG con el código QR

    Example:
        POST /api/2fa/setup
        Headers: Authorization: Bearer <token>
    """
    try:
        secret, qr_code = TwoFactorAuthService.setup(current_user)
        logger.info(f"2FA setup initiated for user: {current_user.id}")
        return TwoFactorSetupResponse(secret=secret, qr_code_url=qr_code)

    except Exception as e:
        logger.exception(f"Error setting up 2FA for user {current_user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error al generar el código QR."
        )


@router.post("/verify")
def verify_2fa_setup(
    data: TwoFactorVerifyRequest,
    current_user: Usuario = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Confirmar la configuración de 2FA con el primer código.

    Body:
        - token: Código de 6 dígitos mostrado por la app
        - secret: Secreto devuelto por /setup

    Returns:
        200 {"verified": true} y el 2FA queda activo, o
        400 {"verified": false, "message"} sin cambios en la cuenta
    """
    try:
        if not TwoFactorAuthService.confirm_setup(current_user, data.secret, data.token, db):
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={
                    "verified": False,
                    "message": "El código de verificación es incorrecto."
                }
            )
        return {"verified": True}

    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Error confirming 2FA for user {current_user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error en el servidor al verificar el token."
        )


@router.post("/disable")
def disable_2fa(
    current_user: Usuario = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Desactivar la autenticación de dos factores.

    Borra el secreto guardado; el siguiente login vuelve a ser de un paso.
    """
    try:
        TwoFactorAuthService.disable(current_user, db)
        return {
            "success": True,
            "message": "La autenticación de dos pasos ha sido desactivada."
        }

    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Error disabling 2FA for user {current_user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error al desactivar 2FA."
        )


@router.get("/status", response_model=TwoFactorStatusResponse)
def get_2fa_status(current_user: Usuario = Depends(get_current_user)):
    """Estado del 2FA de la cuenta actual"""
    return TwoFactorAuthService.get_status(current_user)
