# fidelizacion/services/handlers/login/generate_tokens.py

from fidelizacion.services import security_service
from fidelizacion.services.handlers.base import LoginContext, LoginHandler


class IssueAccessTokenHandler(LoginHandler):
    """Emite el token final del personal (13 horas)."""

    def _handle(self, context: LoginContext):
        user = context.user
        if user is None or context.role_name is None:
            raise RuntimeError("Usuario o rol no resuelto en contexto para emitir token")

        context.token = security_service.create_access_token({
            "sub": str(user.id),
            "role": context.role_name,
            "name": user.nombre_completo,
            "email": user.email,
        })
        context.completed = True
