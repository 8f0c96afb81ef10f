# fidelizacion/services/handlers/change_password/validate_old_password.py

from fidelizacion.core.security import InvalidCredentialsError
from fidelizacion.services import security_service
from fidelizacion.services.handlers.base import ChangePasswordHandler
from fidelizacion.services.handlers.change_password.context import ChangePasswordContext


class ValidateOldPasswordHandler(ChangePasswordHandler):
    """
    Verifica que la contraseña actual proporcionada coincida con el hash almacenado.
    """

    def _handle(self, context: ChangePasswordContext):
        if not security_service.verify_password(
            context.current_password, context.current_user.password_hash
        ):
            raise InvalidCredentialsError("La contraseña actual es incorrecta.")
