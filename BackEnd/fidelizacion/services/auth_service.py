import base64
from io import BytesIO
import logging
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

import binascii
import pyotp
import qrcode
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from fidelizacion.core.config import settings
from fidelizacion.core.security import (
    ConflictError,
    InvalidCredentialsError,
    InvalidTokenError,
    InvalidTwoFactorCodeError,
    MissingTokenError,
    PermissionDeniedError,
    TokenExpiredError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from fidelizacion.db.database import get_db
from fidelizacion.enums.enums import RoleName
from fidelizacion.models.models import Cliente, CuentaCliente, Role, Usuario
from fidelizacion.schemas.auth_schemas import AccessTokenClaims
from fidelizacion.schemas.client_schemas import ClientProfileResponse, ClientRegisterRequest
from fidelizacion.schemas.user_schemas import (
    UserCreate, UserInfoResponse, UserListItem, UserUpdate
)
from fidelizacion.services import security_service
from fidelizacion.services.handlers.base import LoginContext, verify_chain_integrity
from fidelizacion.services.handlers.change_password.context import ChangePasswordContext
from fidelizacion.services.handlers.change_password.update_password import UpdatePasswordHandler
from fidelizacion.services.handlers.change_password.validate_new_password_strength import (
    ValidateNewPasswordStrengthHandler,
)
from fidelizacion.services.handlers.change_password.validate_old_password import ValidateOldPasswordHandler
from fidelizacion.services.handlers.login.check_two_factor import TwoFactorGateHandler
from fidelizacion.services.handlers.login.find_account import FindAccountHandler
from fidelizacion.services.handlers.login.generate_tokens import IssueAccessTokenHandler
from fidelizacion.services.handlers.login.resolve_role import ResolveRoleHandler, resolve_role_name
from fidelizacion.services.handlers.login.verify_password import VerifyPasswordHandler

# ========================================
# 🔧 CONFIGURACIÓN INICIAL
# ========================================

# auto_error=False: la ausencia de token se responde con 401 vacío (no 403)
bearer_scheme = HTTPBearer(auto_error=False)

logger = logging.getLogger(__name__)

# ========================================
#  SERVICIO DE AUTENTICACIÓN DEL PERSONAL
# ========================================

class AuthService:
    """
    Servicio de autenticación y gestión de usuarios del personal

    Proporciona funcionalidades para:
    - Login en uno o dos pasos (contraseña y código 2FA)
    - Registro de usuarios del personal
    - Cambio de contraseña y actualización de perfil
    - Administración de usuarios (listar, consultar, eliminar)
    """

    @staticmethod
    @contextmanager
    def db_transaction(db: Session):
        """
        Context manager para transacciones de base de datos con rollback automático

        Args:
            db: Sesión de base de datos

        Yields:
            Sesión de base de datos
        """
        try:
            yield db
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Database transaction failed: {e}")
            raise

    # ========================================
    #  CADENAS DE HANDLERS
    # ========================================

    @staticmethod
    def build_login_chain():
        """
        Construir la cadena del paso 1 del login.

        FindAccount → VerifyPassword → TwoFactorGate → ResolveRole → IssueAccessToken
        """
        chain = FindAccountHandler()
        (
            chain.set_next(VerifyPasswordHandler())
            .set_next(TwoFactorGateHandler())
            .set_next(ResolveRoleHandler())
            .set_next(IssueAccessTokenHandler())
        )
        if not verify_chain_integrity(chain):
            raise RuntimeError("Cadena de login mal formada")
        return chain

    @staticmethod
    def build_token_chain():
        """Cadena final compartida por el paso 2: ResolveRole → IssueAccessToken"""
        chain = ResolveRoleHandler()
        chain.set_next(IssueAccessTokenHandler())
        return chain

    @staticmethod
    def build_change_password_chain():
        chain = ValidateOldPasswordHandler()
        (
            chain.set_next(ValidateNewPasswordStrengthHandler())
            .set_next(UpdatePasswordHandler())
        )
        if not verify_chain_integrity(chain):
            raise RuntimeError("Cadena de cambio de contraseña mal formada")
        return chain

    # ========================================
    #  LOGIN
    # ========================================

    @staticmethod
    def login(email: str, password: str, db: Session) -> dict:
        """
        Paso 1 del login del personal.

        Args:
            email: Email de la cuenta (se normaliza a minúsculas)
            password: Contraseña en texto plano
            db: Sesión de base de datos

        Returns:
            dict: {"token": ...} si la cuenta no tiene 2FA, o
            {"twoFactorRequired": True, "tempToken": ...} si lo tiene

        Raises:
            InvalidCredentialsError: Email desconocido o contraseña incorrecta
                (mismo mensaje en ambos casos)
        """
        context = LoginContext(email=email, password=password, db=db)
        AuthService.build_login_chain().handle(context)

        if context.two_factor_required:
            logger.info(f"Login paso 1 correcto, 2FA requerido para usuario {context.user.id}")
        else:
            logger.info(f"Login correcto para usuario {context.user.id}")

        return context.result()

    @staticmethod
    def verify_two_factor(
        temp_token: str,
        code: str,
        db: Session,
        for_time: Optional[datetime] = None
    ) -> str:
        """
        Paso 2 del login: canjear token temporal + código TOTP por el token final.

        Args:
            temp_token: Token temporal emitido en el paso 1
            code: Código de 6 dígitos de la app de autenticación
            db: Sesión de base de datos
            for_time: Instante contra el que se valida el código (pruebas)

        Returns:
            str: Token final

        Raises:
            InvalidTokenError / TokenExpiredError: Token temporal inválido
            InvalidTwoFactorCodeError: Código incorrecto
        """
        claims = security_service.decode_pre_auth_token(temp_token)

        try:
            user_id = int(claims.sub)
        except ValueError:
            raise InvalidTokenError("Token temporal inválido")

        user = db.query(Usuario).filter(Usuario.id == user_id).first()
        if not user:
            raise InvalidTokenError("Usuario del token temporal no existe")

        if not user.is_two_factor_enabled or not user.two_factor_secret:
            raise InvalidTwoFactorCodeError("Código 2FA incorrecto.")

        if not TwoFactorAuthService.verify_totp_code(user.two_factor_secret, code, for_time=for_time):
            logger.info(f"Código 2FA incorrecto para usuario {user.id}")
            raise InvalidTwoFactorCodeError("Código 2FA incorrecto.")

        context = LoginContext(email=user.email, password="", db=db)
        context.user = user
        AuthService.build_token_chain().handle(context)

        logger.info(f"Login con 2FA completado para usuario {user.id}")
        return context.token

    # ========================================
    #  REGISTRO Y PERFIL
    # ========================================

    @staticmethod
    def administrator_exists(db: Session) -> bool:
        """True si ya hay al menos una cuenta con rol Administrador"""
        return db.query(Usuario.id).join(Role, Usuario.id_rol == Role.id).filter(
            Role.nombre_rol == RoleName.ADMINISTRADOR.value
        ).first() is not None

    @staticmethod
    def register_staff(user_data: UserCreate, db: Session, allow_admin: bool = False) -> Usuario:
        """
        Registra un usuario del personal

        El registro público solo puede crear un Administrador cuando todavía
        no existe ninguno (arranque del sistema). Después, las cuentas de
        Administrador las crea otro Administrador (allow_admin=True).

        Args:
            user_data: Datos validados del usuario
            db: Sesión de base de datos
            allow_admin: El llamador ya es Administrador

        Returns:
            Usuario: Usuario creado

        Raises:
            UserAlreadyExistsError: Si el email ya está registrado
            PermissionDeniedError: Si se pide rol Administrador sin permiso
        """
        if db.query(Usuario).filter(Usuario.email == user_data.email).first():
            raise UserAlreadyExistsError("El correo electrónico ya está registrado.")

        requested_role = db.query(Role).filter(Role.id == user_data.id_rol).first()
        wants_admin = requested_role is not None and requested_role.nombre_rol == RoleName.ADMINISTRADOR.value
        if wants_admin and not allow_admin and AuthService.administrator_exists(db):
            logger.warning(f"Registro público con rol Administrador rechazado: {user_data.email}")
            raise PermissionDeniedError("Solo un administrador puede crear cuentas de Administrador.")

        user = Usuario(
            nombres=user_data.nombres,
            apellidos=user_data.apellidos,
            email=user_data.email,
            password_hash=security_service.hash_password(user_data.password),
            id_rol=user_data.id_rol,
            is_two_factor_enabled=False,
        )

        try:
            with AuthService.db_transaction(db):
                db.add(user)
        except IntegrityError:
            raise UserAlreadyExistsError("El correo electrónico ya está registrado.")

        db.refresh(user)
        logger.info(f"Usuario del personal creado: {user.id}")
        return user

    @staticmethod
    def change_password(user: Usuario, current_password: str, new_password: str, db: Session) -> None:
        """
        Cambia la contraseña del usuario

        Raises:
            InvalidCredentialsError: Si la contraseña actual es incorrecta
            WeakPasswordError: Si la nueva contraseña es débil o igual a la actual
        """
        context = ChangePasswordContext(
            db=db,
            current_user=user,
            current_password=current_password,
            new_password=new_password,
        )
        AuthService.build_change_password_chain().handle(context)
        logger.info(f"Contraseña actualizada para usuario {user.id}")

    @staticmethod
    def update_user(
        user: Usuario,
        data: UserUpdate,
        db: Session,
        allow_role_change: bool = False
    ) -> Usuario:
        """
        Actualiza nombres, apellidos, email y (solo administradores) el rol.

        Raises:
            UserAlreadyExistsError: Si el nuevo email pertenece a otra cuenta
        """
        if data.email and data.email != user.email:
            taken = (
                db.query(Usuario)
                .filter(Usuario.email == data.email, Usuario.id != user.id)
                .first()
            )
            if taken:
                raise UserAlreadyExistsError("El nuevo correo electrónico ya está en uso.")
            user.email = data.email

        if data.nombres:
            user.nombres = data.nombres
        if data.apellidos is not None:
            user.apellidos = data.apellidos
        if allow_role_change and data.id_rol is not None:
            user.id_rol = data.id_rol

        try:
            with AuthService.db_transaction(db):
                db.add(user)
        except IntegrityError:
            raise UserAlreadyExistsError("El nuevo correo electrónico ya está en uso.")

        db.refresh(user)
        return user

    @staticmethod
    def to_user_info(user: Usuario, db: Session) -> UserInfoResponse:
        return UserInfoResponse(
            id=user.id,
            nombres=user.nombres,
            apellidos=user.apellidos or "",
            email=user.email,
            rol=resolve_role_name(user, db),
            is_two_factor_enabled=bool(user.is_two_factor_enabled),
            created_at=user.created_at,
        )

    # ========================================
    #  ADMINISTRACIÓN DE USUARIOS
    # ========================================

    @staticmethod
    def list_users(db: Session) -> List[UserListItem]:
        users = db.query(Usuario).order_by(Usuario.id).all()
        return [
            UserListItem(
                id=u.id,
                nombre_completo=u.nombre_completo,
                email=u.email,
                rol=resolve_role_name(u, db),
            )
            for u in users
        ]

    @staticmethod
    def get_user(user_id: int, db: Session) -> Usuario:
        user = db.query(Usuario).filter(Usuario.id == user_id).first()
        if not user:
            raise UserNotFoundError("Usuario no encontrado.")
        return user

    @staticmethod
    def delete_user(admin_user: Usuario, target_user_id: int, db: Session) -> None:
        """
        Elimina un usuario del personal

        Raises:
            PermissionDeniedError: Si el administrador intenta eliminarse a sí mismo
            UserNotFoundError: Si el usuario no existe
        """
        if admin_user.id == target_user_id:
            raise PermissionDeniedError("No puedes eliminar tu propia cuenta.")

        user = AuthService.get_user(target_user_id, db)
        with AuthService.db_transaction(db):
            db.delete(user)
        logger.info(f"Usuario {target_user_id} eliminado por administrador {admin_user.id}")


# ========================================
#  AUTENTICACIÓN DE DOS FACTORES
# ========================================

class TwoFactorAuthService:
    """Servicio para manejar autenticación de dos factores"""

    @staticmethod
    def generate_secret() -> str:
        """Genera un secreto aleatorio para TOTP"""
        return pyotp.random_base32()

    @staticmethod
    def get_provisioning_uri(label: str, secret: str) -> str:
        """URI otpauth:// que leen las apps de autenticación"""
        return pyotp.totp.TOTP(secret).provisioning_uri(
            name=label,
            issuer_name=settings.TOTP_ISSUER
        )

    @staticmethod
    def generate_qr_code(uri: str) -> str:
        """
        Genera un código QR para configurar 2FA en Google Authenticator

        Args:
            uri: URI otpauth:// a codificar

        Returns:
            Data URL de la imagen PNG
        """
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=4,
        )
        qr.add_data(uri)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffer = BytesIO()
        img.save(buffer, format="PNG")
        img_str = base64.b64encode(buffer.getvalue()).decode()

        return f"data:image/png;base64,{img_str}"

    @staticmethod
    def verify_totp_code(
        secret: str,
        code: str,
        for_time: Optional[datetime] = None,
        window: int = 1
    ) -> bool:
        """
        Verifica un código TOTP

        Args:
            secret: Secreto TOTP del usuario
            code: Código ingresado por el usuario
            for_time: Instante de referencia (por defecto ahora)
            window: Ventana de tiempo para validación (períodos de 30s)

        Returns:
            True si el código es válido
        """
        if not secret or not code:
            return False

        code = str(code).strip()
        if not code.isdigit():
            return False

        try:
            return pyotp.TOTP(secret).verify(code, for_time=for_time, valid_window=window)
        except (binascii.Error, ValueError, TypeError) as e:
            logger.warning(f"Secreto TOTP inválido: {e}")
            return False

    @staticmethod
    def setup(user: Usuario) -> Tuple[str, str]:
        """
        Genera secreto y QR para el usuario sin guardar nada.

        El secreto solo se persiste en confirm_setup, cuando el usuario
        demuestra que lo capturó en su app.

        Returns:
            Tupla (secret, qr_code_data_url)
        """
        secret = TwoFactorAuthService.generate_secret()
        uri = TwoFactorAuthService.get_provisioning_uri(user.email, secret)
        return secret, TwoFactorAuthService.generate_qr_code(uri)

    @staticmethod
    def confirm_setup(
        user: Usuario,
        secret: str,
        code: str,
        db: Session,
        for_time: Optional[datetime] = None
    ) -> bool:
        """
        Confirma la configuración de 2FA verificando el primer código

        Returns:
            True si la configuración fue exitosa
        """
        if not TwoFactorAuthService.verify_totp_code(secret, code, for_time=for_time):
            return False

        user.two_factor_secret = secret
        user.is_two_factor_enabled = True
        user.two_factor_enabled_at = datetime.now(timezone.utc).replace(tzinfo=None)
        db.commit()

        logger.info(f"2FA activado para usuario {user.id}")
        return True

    @staticmethod
    def disable(user: Usuario, db: Session) -> None:
        """Deshabilita 2FA y borra el secreto guardado"""
        user.two_factor_secret = None
        user.is_two_factor_enabled = False
        user.two_factor_enabled_at = None
        db.commit()

        logger.info(f"2FA desactivado para usuario {user.id}")

    @staticmethod
    def get_status(user: Usuario) -> dict:
        return {
            "enabled": bool(user.is_two_factor_enabled),
            "enabled_at": user.two_factor_enabled_at.isoformat() if user.two_factor_enabled_at else None,
        }


# ========================================
#  AUTENTICACIÓN DE CLIENTES
# ========================================

class ClientAuthService:
    """Registro y login de clientes (sin 2FA)"""

    @staticmethod
    def register(data: ClientRegisterRequest, db: Session) -> CuentaCliente:
        """
        Crea el perfil del cliente y luego su cuenta de acceso.

        Si la cuenta no se puede crear, el perfil recién insertado se borra
        para no dejar clientes huérfanos.

        Raises:
            UserAlreadyExistsError: Email ya registrado
            ConflictError: Teléfono ya registrado
        """
        if db.query(CuentaCliente).filter(CuentaCliente.email == data.email).first():
            raise UserAlreadyExistsError("Este correo electrónico ya está registrado.")

        password_hash = security_service.hash_password(data.password)

        cliente = Cliente(
            nombre_completo=data.nombre_completo,
            numero_telefono=data.numero_telefono,
        )
        try:
            with AuthService.db_transaction(db):
                db.add(cliente)
        except IntegrityError:
            raise ConflictError("El número de teléfono ya está registrado.")
        db.refresh(cliente)

        cuenta = CuentaCliente(
            email=data.email,
            password_hash=password_hash,
            id_cliente=cliente.id,
        )
        try:
            with AuthService.db_transaction(db):
                db.add(cuenta)
        except SQLAlchemyError as e:
            logger.warning(f"Cuenta de cliente no creada, se elimina el cliente {cliente.id}")
            with AuthService.db_transaction(db):
                db.query(Cliente).filter(Cliente.id == cliente.id).delete()
            if isinstance(e, IntegrityError):
                raise UserAlreadyExistsError("Este correo electrónico ya está registrado.")
            raise

        db.refresh(cuenta)
        logger.info(f"Cuenta de cliente creada: {cuenta.id}")
        return cuenta

    @staticmethod
    def login(email: str, password: str, db: Session) -> str:
        """
        Login de clientes: emite directamente el token final (7 días).

        Raises:
            InvalidCredentialsError: Email desconocido o contraseña incorrecta
        """
        email = (email or "").strip().lower()
        cuenta = db.query(CuentaCliente).filter(CuentaCliente.email == email).first()
        if not cuenta or not security_service.verify_password(password, cuenta.password_hash):
            raise InvalidCredentialsError("Credenciales inválidas")

        return security_service.create_access_token(
            {
                "sub": str(cuenta.id),
                "role": RoleName.CLIENTE.value,
                "name": cuenta.cliente.nombre_completo if cuenta.cliente else None,
                "email": cuenta.email,
            },
            expires_delta=timedelta(days=settings.CLIENT_TOKEN_EXPIRE_DAYS),
        )

    @staticmethod
    def get_profile(cuenta: CuentaCliente) -> ClientProfileResponse:
        return ClientProfileResponse(
            id=cuenta.id,
            email=cuenta.email,
            nombre_completo=cuenta.cliente.nombre_completo,
            numero_telefono=cuenta.cliente.numero_telefono,
        )


# ========================================
# DEPENDENCIAS DE SEGURIDAD
# ========================================

def get_current_claims(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
    ) -> AccessTokenClaims:
        """
        Dependencia que valida el token Bearer de las rutas protegidas

        Returns:
            AccessTokenClaims: Claims del token final

        Raises:
            MissingTokenError: Sin cabecera Authorization (401 sin cuerpo)
            HTTPException 403: Token inválido, expirado o temporal
        """
        if credentials is None or not credentials.credentials:
            raise MissingTokenError("Token no proporcionado")

        try:
            return security_service.decode_access_token(credentials.credentials)
        except (InvalidTokenError, TokenExpiredError) as e:
            logger.info(f"Token rechazado: {e}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Token inválido o expirado."
            )


def require_roles(*roles: RoleName, detail: Optional[str] = None):
    """
    Fábrica de dependencias que exige uno de los roles indicados

    Uso:
        @router.get("/", dependencies=[Depends(require_roles(RoleName.ADMINISTRADOR))])
    """
    allowed = {role.value for role in roles}
    message = detail or "Acceso denegado: rol no autorizado."

    def dependency(claims: AccessTokenClaims = Depends(get_current_claims)) -> AccessTokenClaims:
        if claims.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)
        return claims

    return dependency


require_admin = require_roles(
    RoleName.ADMINISTRADOR,
    detail="Acceso denegado: Se requiere rol de Administrador."
)

require_staff = require_roles(
    RoleName.ADMINISTRADOR,
    RoleName.EMPLEADO,
    detail="Acceso denegado: Se requiere una cuenta del personal."
)

require_client = require_roles(
    RoleName.CLIENTE,
    detail="Acceso denegado: Se requiere una cuenta de cliente."
)


def _subject_id(claims: AccessTokenClaims) -> int:
    try:
        return int(claims.sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token inválido o expirado."
        )


def get_current_user(
        claims: AccessTokenClaims = Depends(require_staff),
        db: Session = Depends(get_db)
    ) -> Usuario:
        """
        Dependencia para obtener el usuario del personal autenticado

        Raises:
            HTTPException 401: Si la cuenta ya no existe
        """
        user = db.query(Usuario).filter(Usuario.id == _subject_id(claims)).first()
        if not user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Usuario no encontrado",
                headers={"WWW-Authenticate": "Bearer"}
            )
        return user


def get_current_admin(
        claims: AccessTokenClaims = Depends(require_admin),
        db: Session = Depends(get_db)
    ) -> Usuario:
        """Igual que get_current_user pero exige rol Administrador"""
        return get_current_user(claims, db)


def get_current_client_account(
        claims: AccessTokenClaims = Depends(require_client),
        db: Session = Depends(get_db)
    ) -> CuentaCliente:
        """Dependencia para obtener la cuenta del cliente autenticado"""
        cuenta = db.query(CuentaCliente).filter(CuentaCliente.id == _subject_id(claims)).first()
        if not cuenta:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Cuenta no encontrada",
                headers={"WWW-Authenticate": "Bearer"}
            )
        return cuenta
