"""
Script de inicialización de base de datos.

Crea la estructura de tablas e inserta los datos básicos que la API necesita
para funcionar: los roles del personal y los ajustes por defecto de las
campañas de marketing.

Funcionalidad:
    - Crear todas las tablas de base de datos
    - Inicializar roles (1 = Administrador, 2 = Empleado)
    - Inicializar ajustes de campañas (cumpleaños, promociones, anti-spam)

Uso:
    python -m fidelizacion.core.init_roles

    O desde código:
    from fidelizacion.core.init_roles import init_roles, init_campaign_settings
"""

import logging

from sqlalchemy.orm import Session

from fidelizacion.db.database import Base, SessionLocal, engine
from fidelizacion.enums.enums import CampaignKey, RoleName
from fidelizacion.models.models import CampaignSetting, Role

logger = logging.getLogger(__name__)


ROLES_DATA = [
    {"id": 1, "nombre_rol": RoleName.ADMINISTRADOR.value},
    {"id": 2, "nombre_rol": RoleName.EMPLEADO.value},
]

DEFAULT_CAMPAIGN_SETTINGS = {
    CampaignKey.BIRTHDAY.value: {
        "message": "¡Feliz cumpleaños, {nombre}! Te esperamos en La Capital con un regalo especial.",
        "imageUrl": None,
    },
    CampaignKey.PROMO.value: {
        "message": "",
        "imageUrl": None,
    },
    CampaignKey.RATE_LIMIT.value: {
        "count": 0,
        "lastSent": None,
    },
}


def init_roles(db: Session):
    """
    Inicializar roles básicos en la base de datos.

    Los ids son fijos porque los formularios del panel envían id_rol
    directamente. Idempotente: si un rol ya existe no se recrea.

    Args:
        db (Session): Sesión de base de datos SQLAlchemy

    Raises:
        Exception: Si hay error en la BD durante commit
    """
    for role_data in ROLES_DATA:
        existing_role = db.query(Role).filter(Role.id == role_data["id"]).first()

        if not existing_role:
            db.add(Role(**role_data))
            logger.info(f"Created role: {role_data['nombre_rol']}")
        else:
            logger.info(f"Role already exists: {existing_role.nombre_rol}")

    try:
        db.commit()
        logger.info("Roles initialized successfully")
    except Exception as e:
        db.rollback()
        logger.error(f"Error initializing roles: {e}")
        raise


def init_campaign_settings(db: Session):
    """Insertar los ajustes de campaña que falten, sin tocar los existentes."""
    for key, value in DEFAULT_CAMPAIGN_SETTINGS.items():
        if db.query(CampaignSetting).filter(CampaignSetting.key == key).first() is None:
            db.add(CampaignSetting(key=key, value=value))
            logger.info(f"Created campaign setting: {key}")

    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error initializing campaign settings: {e}")
        raise


def main():
    """
    Crear tablas e insertar datos iniciales.

    create_all no recrea tablas existentes; en producción el esquema lo
    gestiona la base alojada.
    """
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        init_roles(db)
        init_campaign_settings(db)
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
