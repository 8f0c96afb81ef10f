# fidelizacion/services/handlers/change_password/validate_new_password_strength.py

from fidelizacion.core.security import WeakPasswordError
from fidelizacion.schemas.user_schemas import check_strong_password
from fidelizacion.services import security_service
from fidelizacion.services.handlers.base import ChangePasswordHandler
from fidelizacion.services.handlers.change_password.context import ChangePasswordContext


class ValidateNewPasswordStrengthHandler(ChangePasswordHandler):
    """
    Valida que la nueva contraseña cumpla los requisitos mínimos y que no
    sea igual a la actual.
    """

    MIN_LENGTH = 8

    def _handle(self, context: ChangePasswordContext):
        password = context.new_password or ""

        if len(password) < self.MIN_LENGTH:
            raise WeakPasswordError(
                f"La nueva contraseña debe tener al menos {self.MIN_LENGTH} caracteres"
            )

        try:
            check_strong_password(password)
        except ValueError as e:
            raise WeakPasswordError(str(e))

        if security_service.verify_password(password, context.current_user.password_hash):
            raise WeakPasswordError("La nueva contraseña debe ser diferente a la actual")
