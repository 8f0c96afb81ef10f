# fidelizacion/services/security_service.py
import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError

from fidelizacion.core.config import settings
from fidelizacion.core.security import InvalidTokenError, TokenExpiredError
from fidelizacion.enums.enums import TokenType
from fidelizacion.schemas.auth_schemas import AccessTokenClaims, PreAuthTokenClaims

logger = logging.getLogger(__name__)

#  ÚNICA instancia de pwd_context en toda la aplicación
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# ========================================
#  FUNCIONES DE PASSWORD
# ========================================
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifica que la contraseña en texto plano coincida con el hash.

    Args:
        plain_password: Contraseña en texto plano
        hashed_password: Hash almacenado en la base de datos

    Returns:
        bool: True si la contraseña es correcta. Un hash vacío o con
        formato desconocido cuenta como no coincidente.
    """
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError) as e:
        logger.error(f"Error verificando password: {e}")
        return False


def hash_password(password: str) -> str:
    """
    Genera un hash bcrypt de la contraseña con sal aleatoria.

    Args:
        password: Contraseña en texto plano

    Returns:
        str: Hash de la contraseña (incluye la sal)
    """
    return pwd_context.hash(password)

# ========================================
#  FUNCIONES DE JWT
# ========================================
def _signing_key(token_type: TokenType) -> str:
    # Una clave distinta por clase de token, derivada de SECRET_KEY
    if not settings.SECRET_KEY:
        raise RuntimeError("SECRET_KEY no configurada")
    return hashlib.sha256(f"{settings.SECRET_KEY}:{token_type.value}".encode()).hexdigest()


def _encode(data: dict, token_type: TokenType, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": int(expire.timestamp()), "type": token_type.value})
    return jwt.encode(to_encode, _signing_key(token_type), algorithm=settings.ALGORITHM)


def _decode(token: str, token_type: TokenType, now: Optional[datetime] = None) -> dict:
    try:
        payload = jwt.decode(token, _signing_key(token_type), algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpiredError("Token expirado")
    except JWTError as e:
        logger.warning(f"Token decode error: {e}")
        raise InvalidTokenError("Token inválido")

    if payload.get("type") != token_type.value:
        raise InvalidTokenError("Tipo de token inválido")

    # El token deja de ser válido en el instante exacto de su expiración
    current = now or datetime.now(timezone.utc)
    exp = payload.get("exp")
    if not isinstance(exp, int) or current.timestamp() >= exp:
        raise TokenExpiredError("Token expirado")

    return payload


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Crea el token final que autoriza las rutas protegidas.

    Args:
        data: Claims a incluir (sub, role, name, email)
        expires_delta: Tiempo de expiración personalizado. Por defecto el
            del personal (13 horas); los clientes pasan 7 días.

    Returns:
        str: Token JWT codificado
    """
    if "sub" not in data or "role" not in data:
        raise ValueError("El token final requiere 'sub' y 'role'")
    ttl = expires_delta or timedelta(hours=settings.STAFF_TOKEN_EXPIRE_HOURS)
    return _encode({**data, "sub": str(data["sub"])}, TokenType.ACCESS, ttl)


def create_pre_auth_token(account_id, expires_delta: Optional[timedelta] = None) -> str:
    """
    Crea el token temporal del paso 1 del login con 2FA.

    Solo prueba que la contraseña fue correcta; no lleva rol y no sirve
    para ninguna ruta protegida.
    """
    ttl = expires_delta or timedelta(minutes=settings.PRE_AUTH_TOKEN_EXPIRE_MINUTES)
    return _encode({"sub": str(account_id), "is_pre_auth": True}, TokenType.PRE_AUTH, ttl)


def decode_access_token(token: str, now: Optional[datetime] = None) -> AccessTokenClaims:
    """
    Decodifica y valida un token final.

    Raises:
        TokenExpiredError: Si el token expiró
        InvalidTokenError: Firma inválida, formato incorrecto o token temporal
    """
    payload = _decode(token, TokenType.ACCESS, now)
    try:
        return AccessTokenClaims.model_validate(payload)
    except ValidationError:
        raise InvalidTokenError("Claims inválidos")


def decode_pre_auth_token(token: str, now: Optional[datetime] = None) -> PreAuthTokenClaims:
    """
    Decodifica y valida un token temporal de 2FA.

    Raises:
        TokenExpiredError: Si el token expiró
        InvalidTokenError: Firma inválida, formato incorrecto o token final
    """
    payload = _decode(token, TokenType.PRE_AUTH, now)
    try:
        return PreAuthTokenClaims.model_validate(payload)
    except ValidationError:
        raise InvalidTokenError("Claims inválidos")
