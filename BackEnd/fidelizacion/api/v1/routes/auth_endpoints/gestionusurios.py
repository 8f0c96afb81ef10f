"""
Módulo de gestión de usuarios del personal.

Contiene los endpoints del perfil propio (consultar, editar, cambiar
contraseña) y los de administración de cuentas, que requieren rol
Administrador (listar, crear, consultar, editar y eliminar usuarios).
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fidelizacion.core.security import (
    InvalidCredentialsError, PermissionDeniedError, UserAlreadyExistsError,
    UserNotFoundError, WeakPasswordError
)
from fidelizacion.db.database import get_db
from fidelizacion.models.models import Usuario
from fidelizacion.schemas.user_schemas import (
    ChangePasswordRequest, UserCreate, UserInfoResponse, UserListItem, UserUpdate
)
from fidelizacion.services.auth_service import AuthService, get_current_admin, get_current_user


# ========================================
# 🔧 CONFIGURACIÓN
# ========================================

router = APIRouter(prefix="/api/users", tags=["users"])
logger = logging.getLogger(__name__)


# ========================================
# 👤 PERFIL DEL USUARIO AUTENTICADO
# ========================================

@router.get("/me", response_model=UserInfoResponse)
def get_current_user_info(
    current_user: Usuario = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Obtener información del perfil del usuario autenticado.

    Returns:
        UserInfoResponse: id, nombres, apellidos, email, rol, estado del 2FA
            y fecha de creación
    """
    return AuthService.to_user_info(current_user, db)


@router.put("/me")
def update_current_user(
    data: UserUpdate,
    current_user: Usuario = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Actualizar nombres, apellidos o email del perfil propio.

    El rol no se puede cambiar desde aquí aunque venga en el body.

    Raises:
        HTTPException 409: El nuevo email ya pertenece a otra cuenta
    """
    try:
        user = AuthService.update_user(current_user, data, db)
        return {
            "message": "Perfil actualizado exitosamente.",
            "user": AuthService.to_user_info(user, db).model_dump(mode="json"),
        }

    except UserAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/change-password", status_code=status.HTTP_200_OK, summary="Cambiar contraseña")
def change_password(
    data: ChangePasswordRequest,
    current_user: Usuario = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Cambiar la contraseña del usuario autenticado.

    Body:
        - currentPassword: Contraseña actual
        - newPassword: Nueva contraseña (8+ caracteres, mayúscula, minúscula,
          número y carácter especial; distinta de la actual)

    Raises:
        HTTPException 400: Contraseña actual incorrecta o nueva contraseña débil
    """
    try:
        AuthService.change_password(current_user, data.current_password, data.new_password, db)
        return {"message": "Contraseña actualizada exitosamente."}

    except (InvalidCredentialsError, WeakPasswordError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Database error during password change: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno del servidor durante el cambio de contraseña"
        )


# ========================================
# 🛡️ ADMINISTRACIÓN DE USUARIOS
# ========================================

@router.get("", response_model=List[UserListItem])
def list_users(
    admin: Usuario = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Listar todos los usuarios del personal (solo Administrador)"""
    return AuthService.list_users(db)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    admin: Usuario = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """
    Crear un usuario del personal desde el panel (solo Administrador).

    Raises:
        HTTPException 409: Email ya registrado
    """
    try:
        user = AuthService.register_staff(user_data, db, allow_admin=True)
        logger.info(f"Usuario {user.id} creado por administrador {admin.id}")
        return {
            "message": "Usuario creado exitosamente",
            "user": AuthService.to_user_info(user, db).model_dump(mode="json"),
        }

    except UserAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get("/{user_id}", response_model=UserInfoResponse)
def get_user(
    user_id: int,
    admin: Usuario = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    try:
        return AuthService.to_user_info(AuthService.get_user(user_id, db), db)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put("/{user_id}")
def update_user(
    user_id: int,
    data: UserUpdate,
    admin: Usuario = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Editar datos y rol de un usuario (solo Administrador)"""
    try:
        user = AuthService.get_user(user_id, db)
        user = AuthService.update_user(user, data, db, allow_role_change=True)
        return {
            "message": "Usuario actualizado exitosamente.",
            "user": AuthService.to_user_info(user, db).model_dump(mode="json"),
        }

    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    except UserAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    admin: Usuario = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """
    Eliminar un usuario del personal (solo Administrador).

    Raises:
        HTTPException 400: El administrador intenta eliminar su propia cuenta
        HTTPException 404: Usuario no encontrado
    """
    try:
        AuthService.delete_user(admin, user_id, db)
        return {"message": "Usuario eliminado exitosamente."}

    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
