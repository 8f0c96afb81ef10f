"""
Módulo de modelos ORM para base de datos.

Define las tablas del sistema de fidelización usando SQLAlchemy ORM. Los
nombres de tabla y columna coinciden con los del Postgres alojado en
Supabase para que el mismo modelo sirva en producción y en pruebas.

Estructura:
    - Autenticación: Role, Usuario
    - Clientes: Cliente, CuentaCliente
    - Catálogo: Producto, ActivoDigital
    - Marketing: CampaignSetting
"""

from sqlalchemy import (
    JSON, Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric,
    String, Text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fidelizacion.db.database import Base


# =========================================================
# AUTENTICACIÓN
# =========================================================

class Role(Base):
    """
    Modelo de roles del personal.

    Campos:
        - id: 1 = Administrador, 2 = Empleado
        - nombre_rol: Nombre único del rol
    """
    __tablename__ = "Roles"

    id = Column(Integer, primary_key=True)
    nombre_rol = Column(String(50), unique=True, nullable=False, index=True)

    usuarios = relationship("Usuario", back_populates="role")

    def __repr__(self):
        return f"<Role(id={self.id}, nombre_rol={self.nombre_rol})>"


class Usuario(Base):
    """
    Modelo de usuario del personal (panel de administración).

    Campos principales:
        - email: Correo único (usado para login)
        - password_hash: Hash bcrypt (nunca guardar en claro)
        - id_rol: FK a Roles

    Campos 2FA:
        - two_factor_secret: Secreto TOTP en base32, solo se guarda después
          de que el usuario demuestra que lo capturó
        - is_two_factor_enabled: Si el login exige el segundo paso
        - two_factor_enabled_at: Cuándo se activó
    """
    __tablename__ = "Usuarios"

    id = Column(Integer, primary_key=True, index=True)
    nombres = Column(String(100), nullable=False)
    apellidos = Column(String(100), nullable=False, default="")
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(128), nullable=False)

    id_rol = Column(Integer, ForeignKey("Roles.id"), nullable=False)
    role = relationship("Role", back_populates="usuarios")

    two_factor_secret = Column(String(64), nullable=True)
    is_two_factor_enabled = Column(Boolean, default=False, nullable=False)
    two_factor_enabled_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    @property
    def nombre_completo(self) -> str:
        return f"{self.nombres} {self.apellidos}".strip()

    def __repr__(self):
        return f"<Usuario(id={self.id}, email={self.email})>"


# =========================================================
# CLIENTES
# =========================================================

class Cliente(Base):
    """
    Perfil de cliente del restaurante.

    Lo crea el personal desde el panel o el propio cliente al registrarse
    en la experiencia AR. El teléfono es único porque es el canal de
    contacto de las campañas por WhatsApp.
    """
    __tablename__ = "Clientes"

    id = Column(Integer, primary_key=True, index=True)
    nombre_completo = Column(String(200), nullable=False, index=True)
    numero_telefono = Column(String(30), unique=True, nullable=False)
    fecha_nacimiento = Column(Date, nullable=True)
    genero = Column(String(30), nullable=True)
    notas = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    cuenta = relationship(
        "CuentaCliente",
        back_populates="cliente",
        uselist=False,
        cascade="all, delete-orphan"
    )


class CuentaCliente(Base):
    """Credenciales de acceso de un cliente (sin 2FA)."""
    __tablename__ = "CuentasCliente"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(128), nullable=False)
    id_cliente = Column(Integer, ForeignKey("Clientes.id"), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    cliente = relationship("Cliente", back_populates="cuenta")


# =========================================================
# CATÁLOGO
# =========================================================

class Producto(Base):
    """Plato o bebida del menú."""
    __tablename__ = "Productos"

    id = Column(Integer, primary_key=True, index=True)
    nombre = Column(String(100), nullable=False)
    descripcion = Column(Text, nullable=True)
    precio = Column(Numeric(12, 2), nullable=False)
    categoria = Column(String(100), nullable=False)
    activo = Column(Boolean, default=True, nullable=False)

    activos_digitales = relationship(
        "ActivoDigital",
        back_populates="producto",
        uselist=False
    )


class ActivoDigital(Base):
    """URLs públicas del modelo 3D, QR e imágenes por ángulo de un producto."""
    __tablename__ = "ActivosDigitales"

    id = Column(Integer, primary_key=True, index=True)
    id_producto = Column(Integer, ForeignKey("Productos.id"), unique=True, nullable=False)
    url_modelo_3d = Column(String(500), nullable=True)
    url_qr_code = Column(String(500), nullable=True)
    urls_imagenes = Column(JSON, nullable=True)

    producto = relationship("Producto", back_populates="activos_digitales")


# =========================================================
# MARKETING
# =========================================================

class CampaignSetting(Base):
    """
    Ajuste de campaña identificado por clave.

    Claves conocidas: birthday_campaign, promo_campaign (mensaje e imagen)
    y rate_limit (contador anti-spam {count, lastSent}).
    """
    __tablename__ = "CampaignSettings"

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=False, default=dict)
