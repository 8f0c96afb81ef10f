# fidelizacion/services/handlers/login/find_account.py

from fidelizacion.core.security import InvalidCredentialsError
from fidelizacion.models.models import Usuario
from fidelizacion.services.handlers.base import LoginContext, LoginHandler


class FindAccountHandler(LoginHandler):
    """
    Busca la cuenta del personal por email.

    El mensaje de error es el mismo que el de contraseña incorrecta para no
    revelar qué correos están registrados.
    """

    def _handle(self, context: LoginContext):
        email = (context.email or "").strip().lower()
        user = context.db.query(Usuario).filter(Usuario.email == email).first()
        if not user:
            raise InvalidCredentialsError("Credenciales inválidas")
        context.user = user
