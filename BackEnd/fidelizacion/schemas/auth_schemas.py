# auth_schemas.py - Esquemas Pydantic para autenticación del personal, clientes y 2FA

from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


# ========================================
#  CLAIMS DE LOS TOKENS
# ========================================

class AccessTokenClaims(BaseModel):
    """Claims del token final (autoriza rutas protegidas)"""
    sub: str = Field(..., description="Subject (account ID)")
    role: str = Field(..., description="Administrador | Empleado | Cliente")
    name: Optional[str] = Field(None, description="Display name")
    email: Optional[str] = Field(None, description="Account email")
    type: Literal["access"] = "access"
    exp: Optional[int] = Field(None, description="Expiration (unix seconds)")


class PreAuthTokenClaims(BaseModel):
    """Claims del token temporal que une el paso 1 y el paso 2 del login"""
    sub: str = Field(..., description="Subject (account ID)")
    is_pre_auth: Literal[True] = True
    type: Literal["pre_auth"] = "pre_auth"
    exp: Optional[int] = Field(None, description="Expiration (unix seconds)")


# ========================================
#  LOGIN
# ========================================

class LoginRequest(BaseModel):
    """Credenciales de login (personal y clientes)"""
    email: EmailStr = Field(..., description="Account email")
    password: str = Field(..., min_length=1, description="Account password")

    @field_validator('email')
    def email_must_be_lowercase(cls, v):
        return v.lower().strip()


class TokenResponse(BaseModel):
    """Respuesta con el token final"""
    token: str = Field(..., description="Final bearer token")


class TwoFactorRequiredResponse(BaseModel):
    """Respuesta del paso 1 cuando la cuenta tiene 2FA activo"""
    two_factor_required: Literal[True] = Field(True, alias="twoFactorRequired")
    temp_token: str = Field(..., alias="tempToken")

    model_config = ConfigDict(populate_by_name=True)


class VerifyTwoFactorLoginRequest(BaseModel):
    """Paso 2 del login"""
    temp_token: str = Field(..., alias="tempToken", min_length=1)
    two_factor_code: str = Field(..., alias="twoFactorCode", min_length=1)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('two_factor_code')
    def strip_code(cls, v):
        return v.strip()


# ========================================
#  CONFIGURACIÓN 2FA
# ========================================

class TwoFactorSetupResponse(BaseModel):
    """Secreto y QR para configurar la app de autenticación"""
    secret: str = Field(..., description="Base32 secret for manual entry")
    qr_code_url: str = Field(..., alias="qrCodeUrl", description="PNG data URL")

    model_config = ConfigDict(populate_by_name=True)


class TwoFactorVerifyRequest(BaseModel):
    """Confirmación del setup: código actual + secreto devuelto por /setup"""
    token: str = Field(..., min_length=1, description="6-digit TOTP code")
    secret: str = Field(..., min_length=16, max_length=64, description="Base32 secret from /setup")

    @field_validator('token', 'secret')
    def strip_value(cls, v):
        return v.strip()


class TwoFactorStatusResponse(BaseModel):
    """Estado del 2FA de la cuenta actual"""
    enabled: bool
    enabled_at: Optional[str] = None
