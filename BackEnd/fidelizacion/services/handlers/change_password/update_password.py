# fidelizacion/services/handlers/change_password/update_password.py

from fidelizacion.services import security_service
from fidelizacion.services.handlers.base import ChangePasswordHandler
from fidelizacion.services.handlers.change_password.context import ChangePasswordContext


class UpdatePasswordHandler(ChangePasswordHandler):
    """
    Actualiza el hash de la contraseña del usuario en la base de datos.
    """

    def _handle(self, context: ChangePasswordContext):
        context.current_user.password_hash = security_service.hash_password(context.new_password)
        context.db.commit()
