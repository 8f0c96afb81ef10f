# fidelizacion/services/handlers/login/verify_password.py

import logging

from fidelizacion.core.security import InvalidCredentialsError
from fidelizacion.services import security_service
from fidelizacion.services.handlers.base import LoginContext, LoginHandler

logger = logging.getLogger(__name__)


class VerifyPasswordHandler(LoginHandler):
    """Compara la contraseña enviada con el hash almacenado."""

    def _handle(self, context: LoginContext):
        if not security_service.verify_password(context.password, context.user.password_hash):
            logger.info(f"Login fallido para usuario {context.user.id}")
            raise InvalidCredentialsError("Credenciales inválidas")
