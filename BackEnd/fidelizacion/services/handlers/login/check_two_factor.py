# fidelizacion/services/handlers/login/check_two_factor.py

from fidelizacion.services import security_service
from fidelizacion.services.handlers.base import LoginContext, LoginHandler


class TwoFactorGateHandler(LoginHandler):
    """
    Detiene la cadena cuando la cuenta tiene 2FA activo.

    En ese caso solo se entrega un token temporal; el token final lo emite
    el paso 2 (verify-2fa) después de validar el código TOTP.
    """

    def _handle(self, context: LoginContext):
        if not context.user.is_two_factor_enabled:
            return

        context.temp_token = security_service.create_pre_auth_token(context.user.id)
        context.two_factor_required = True
        context.completed = True
