"""
Módulo base de handlers para patrones Chain of Responsibility.

Implementa clases base para las cadenas de handlers utilizadas en los
flujos de autenticación de la aplicación:
    - LoginHandler: Login del personal (credenciales + 2FA opcional)
    - ChangePasswordHandler: Cambio de contraseña

Patrón Chain of Responsibility:
    - Cada handler procesa una parte de la lógica
    - Pasa contexto al siguiente handler
    - Un handler puede terminar la cadena marcando el contexto como resuelto
    - Cada handler es independiente y reutilizable
"""

from abc import ABC, abstractmethod
import logging
from typing import Optional

from fidelizacion.schemas.auth_schemas import TokenResponse, TwoFactorRequiredResponse

logger = logging.getLogger(__name__)


# =========================================================
# UTILIDADES
# =========================================================

def verify_chain_integrity(handler_chain) -> bool:
    """
    Verificar que la cadena de handlers esté bien formada sin ciclos.

    Recorre la cadena desde el handler inicial hasta el final usando el
    id() de cada objeto; si un id se repite hay una referencia circular.

    Args:
        handler_chain: Handler inicial de la cadena

    Returns:
        bool: True si válida, False si hay ciclos
    """
    visited = set()
    current = handler_chain
    chain_list = []

    while current is not None:
        handler_name = current.__class__.__name__
        handler_id = id(current)

        if handler_id in visited:
            logger.error(
                f"Ciclo detectado en cadena de handlers. "
                f"Cadena hasta ciclo: {' -> '.join(chain_list)}. "
                f"Handler que repite: {handler_name}"
            )
            return False

        visited.add(handler_id)
        chain_list.append(handler_name)
        current = current._next_handler

    logger.debug(f"Cadena de handlers válida: {' -> '.join(chain_list)}")
    return True


# =========================================================
# LOGIN HANDLERS
# =========================================================

class LoginContext:
    """
    Contexto para el login del personal.

    Campos de entrada:
        - email, password: Credenciales enviadas
        - db: Sesión de BD

    Campos de salida (llenados por handlers):
        - user: Usuario encontrado
        - role_name: Rol resuelto para el token
        - token: Token final (solo si no se requiere 2FA)
        - temp_token: Token temporal (solo si se requiere 2FA)
        - two_factor_required: True cuando la cadena terminó en el paso 1
        - completed: Detiene la cadena cuando es True
    """

    def __init__(self, email: str, password: str, db):
        self.email = email
        self.password = password
        self.db = db
        self.user = None
        self.role_name: Optional[str] = None
        self.token: Optional[str] = None
        self.temp_token: Optional[str] = None
        self.two_factor_required = False
        self.completed = False

    def result(self) -> dict:
        if self.two_factor_required:
            return TwoFactorRequiredResponse(temp_token=self.temp_token).model_dump(by_alias=True)
        return TokenResponse(token=self.token).model_dump()


class LoginHandler(ABC):
    """
    Clase base para handlers del login.

    Cadena:
        FindAccountHandler
            ↓
        VerifyPasswordHandler
            ↓
        TwoFactorGateHandler   (termina aquí con token temporal si hay 2FA)
            ↓
        ResolveRoleHandler
            ↓
        IssueAccessTokenHandler
    """

    def __init__(self):
        self._next_handler = None

    def set_next(self, handler: "LoginHandler") -> "LoginHandler":
        """Establecer siguiente handler y devolverlo para encadenar."""
        self._next_handler = handler
        return handler

    def handle(self, context: LoginContext):
        """Ejecutar y continuar la cadena mientras no esté resuelta."""
        self._handle(context)
        if self._next_handler and not context.completed:
            self._next_handler.handle(context)

    @abstractmethod
    def _handle(self, context: LoginContext):
        """Lógica específica (implementar en subclass)."""
        pass


# =========================================================
# CHANGE PASSWORD HANDLERS
# =========================================================

class ChangePasswordHandler(ABC):
    """
    Clase base para handlers de cambio de contraseña.

    Cadena:
        ValidateOldPasswordHandler
            ↓
        ValidateNewPasswordStrengthHandler
            ↓
        UpdatePasswordHandler
    """

    def __init__(self):
        self._next_handler = None

    def set_next(self, handler: "ChangePasswordHandler"):
        """Establecer siguiente handler."""
        self._next_handler = handler
        return handler

    def handle(self, context):
        """Ejecutar y continuar cadena."""
        self._handle(context)
        if self._next_handler:
            self._next_handler.handle(context)

    @abstractmethod
    def _handle(self, context):
        """Lógica específica (implementar en subclass)."""
        pass
