from datetime import datetime
import re
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


# ========================================
# 📝 ESQUEMAS DE USUARIO DEL PERSONAL
# ========================================

NAME_PATTERN = re.compile(r"^[A-Za-zÁÉÍÓÚÜÑáéíóúüñ\s]+$")

# bcrypt solo usa los primeros 72 bytes de la contraseña
PASSWORD_MAX_BYTES = 72


def check_password_length(v: str) -> str:
    if len(v.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"La contraseña no puede superar {PASSWORD_MAX_BYTES} bytes")
    return v


def check_strong_password(v: str) -> str:
    check_password_length(v)
    if (
        not re.search(r"[A-Z]", v) or       # Mayúscula
        not re.search(r"[a-z]", v) or       # Minúscula
        not re.search(r"\d", v) or          # Dígito
        not re.search(r"[^\w\s]", v)        # Carácter especial
    ):
        raise ValueError(
            "La contraseña debe incluir al menos una mayúscula, una minúscula, "
            "un número y un carácter especial"
        )
    return v


class UserBase(BaseModel):
    """Esquema base de usuario"""
    nombres: str = Field(..., min_length=1, max_length=100)
    apellidos: str = Field("", max_length=100)
    email: EmailStr

    @field_validator('email')
    def email_must_be_lowercase(cls, v):
        return v.lower().strip()

    @field_validator('nombres', 'apellidos')
    def name_must_be_clean(cls, v):
        v = v.strip()
        if v and not NAME_PATTERN.match(v):
            raise ValueError("El nombre no debe contener números ni símbolos")
        return v


class UserCreate(UserBase):
    """Esquema para registro / creación de usuario del personal"""
    password: str = Field(..., min_length=8, max_length=PASSWORD_MAX_BYTES)
    id_rol: int = Field(..., ge=1, le=2, description="1 = Administrador, 2 = Empleado")

    @field_validator('nombres')
    def nombres_required(cls, v):
        if not v:
            raise ValueError("El nombre es requerido")
        return v

    @field_validator("password")
    def password_must_be_strong(cls, v):
        return check_strong_password(v)


class UserUpdate(BaseModel):
    """Actualización de perfil propio o de otro usuario (admin)"""
    nombres: Optional[str] = Field(None, min_length=1, max_length=100)
    apellidos: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    id_rol: Optional[int] = Field(None, ge=1, le=2)

    @model_validator(mode="before")
    @classmethod
    def at_least_one_field(cls, data):
        if isinstance(data, dict) and not any(
            data.get(field) not in (None, "") for field in ("nombres", "apellidos", "email", "id_rol")
        ):
            raise ValueError("Debes proporcionar al menos un campo para actualizar")
        return data

    @field_validator('email')
    def email_must_be_lowercase(cls, v):
        return v.lower().strip() if v else v


class ChangePasswordRequest(BaseModel):
    """Cambio de contraseña del usuario autenticado"""
    current_password: str = Field(..., alias="currentPassword", min_length=1)
    new_password: str = Field(..., alias="newPassword", min_length=8, max_length=PASSWORD_MAX_BYTES)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("new_password")
    def password_must_be_strong(cls, v):
        return check_strong_password(v)


class UserInfoResponse(BaseModel):
    """Información de un usuario del personal"""
    id: int
    nombres: str
    apellidos: str
    email: str
    rol: str
    is_two_factor_enabled: bool = False
    created_at: Optional[datetime] = None


class UserListItem(BaseModel):
    """Fila del listado de usuarios"""
    id: int
    nombre_completo: str
    email: str
    rol: str
