from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from fidelizacion.schemas.user_schemas import PASSWORD_MAX_BYTES, check_password_length


# ========================================
# CLIENTES (gestionados por el personal)
# ========================================

class ClientBase(BaseModel):
    """Campos comunes de un cliente"""
    nombre_completo: str = Field(..., min_length=1, max_length=200)
    numero_telefono: str = Field(..., min_length=8, max_length=30)
    fecha_nacimiento: Optional[date] = None
    genero: Optional[str] = Field(None, max_length=30)
    notas: Optional[str] = None

    @field_validator('nombre_completo', 'numero_telefono')
    def strip_value(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("El campo es requerido")
        return v


class ClientCreate(ClientBase):
    """Alta de cliente desde el panel"""
    pass


class ClientUpdate(BaseModel):
    """Actualización parcial de un cliente"""
    nombre_completo: Optional[str] = Field(None, min_length=1, max_length=200)
    numero_telefono: Optional[str] = Field(None, min_length=8, max_length=30)
    fecha_nacimiento: Optional[date] = None
    genero: Optional[str] = Field(None, max_length=30)
    notas: Optional[str] = None


class ClientResponse(BaseModel):
    """Cliente tal como lo devuelve la API"""
    id: int
    nombre_completo: str
    numero_telefono: str
    fecha_nacimiento: Optional[date] = None
    genero: Optional[str] = None
    notas: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ========================================
# CUENTAS DE CLIENTE (auto-registro)
# ========================================

class ClientRegisterRequest(BaseModel):
    """Registro de un cliente desde la experiencia AR"""
    nombre_completo: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    numero_telefono: str = Field(..., min_length=1, max_length=30)
    password: str = Field(..., min_length=8, max_length=PASSWORD_MAX_BYTES)

    @field_validator('email')
    def email_must_be_lowercase(cls, v):
        return v.lower().strip()

    @field_validator('password')
    def password_fits_bcrypt(cls, v):
        return check_password_length(v)

    @field_validator('nombre_completo', 'numero_telefono')
    def strip_value(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("El campo es requerido")
        return v


class ClientAccountResponse(BaseModel):
    """Cuenta de cliente sin datos sensibles"""
    id: int
    email: str
    id_cliente: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ClientProfileResponse(BaseModel):
    """Perfil de la cuenta autenticada del cliente"""
    id: int
    email: str
    nombre_completo: str
    numero_telefono: str
