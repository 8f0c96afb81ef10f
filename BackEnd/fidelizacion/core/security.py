# security.py - Excepciones de dominio para autenticación y acceso a datos

# ========================================
#  EXCEPCIONES PERSONALIZADAS
# ========================================

class AuthServiceError(Exception):
    """Base exception for authentication service errors"""
    pass


class InvalidCredentialsError(AuthServiceError):
    """Invalid credentials error"""
    pass


class TokenExpiredError(AuthServiceError):
    """Token expired error"""
    pass


class InvalidTokenError(AuthServiceError):
    """Invalid token error - bad signature, malformed or wrong token class"""
    pass


class MissingTokenError(AuthServiceError):
    """No bearer token was sent to a protected route"""
    pass


class InvalidTwoFactorCodeError(AuthServiceError):
    """Invalid 2FA code provided"""
    pass


class UserNotFoundError(AuthServiceError):
    """User not found error"""
    pass


class UserAlreadyExistsError(AuthServiceError):
    """User already exists error"""
    pass


class WeakPasswordError(AuthServiceError):
    """Weak password error"""
    pass


class PermissionDeniedError(AuthServiceError):
    """Permission denied error"""
    pass


class NotFoundError(Exception):
    """Resource not found (products, clients, users)"""
    pass


class ConflictError(Exception):
    """Unique constraint violated (duplicate email or phone)"""
    pass


class RateLimitError(Exception):
    """Rate limit exceeded"""

    def __init__(self, message: str, cooldown: int):
        super().__init__(message)
        self.cooldown = cooldown
