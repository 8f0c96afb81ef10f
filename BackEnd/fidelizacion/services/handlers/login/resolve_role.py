# fidelizacion/services/handlers/login/resolve_role.py

import logging

from sqlalchemy.exc import SQLAlchemyError

from fidelizacion.enums.enums import RoleName
from fidelizacion.models.models import Role
from fidelizacion.services.handlers.base import LoginContext, LoginHandler

logger = logging.getLogger(__name__)


def resolve_role_name(user, db) -> str:
    """
    Obtener el nombre del rol de un usuario del personal.

    Si el rol no existe en la tabla Roles (o la consulta falla) se usa
    "Empleado" y se deja un warning en el log para detectar datos
    inconsistentes.
    """
    try:
        role = db.query(Role).filter(Role.id == user.id_rol).first()
    except SQLAlchemyError as e:
        logger.warning(f"Error consultando rol {user.id_rol} del usuario {user.id}: {e}")
        role = None

    if role is None:
        logger.warning(
            f"Rol {user.id_rol} no encontrado para usuario {user.id}; "
            f"se asigna {RoleName.EMPLEADO.value}"
        )
        return RoleName.EMPLEADO.value

    return role.nombre_rol


class ResolveRoleHandler(LoginHandler):

    def _handle(self, context: LoginContext):
        context.role_name = resolve_role_name(context.user, context.db)
