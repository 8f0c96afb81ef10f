"""
Módulo de configuración de base de datos.

Este módulo gestiona la conexión al almacén de datos del sistema de
fidelización (Postgres alojado en Supabase en producción, SQLite en
desarrollo y pruebas), incluyendo el motor SQLAlchemy, las sesiones,
el modelo base y la inyección de dependencias para FastAPI.

Componentes:
    - engine: Motor SQLAlchemy de conexión
    - SessionLocal: Factory de sesiones
    - Base: Declarative base para modelos ORM
    - get_db: Dependency injection para FastAPI
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from fidelizacion.core.config import settings

# =========================================================
#  CREACIÓN DEL MOTOR SQLALCHEMY
# =========================================================

# **engine**: Motor SQLAlchemy que gestiona conexiones con la BD
#   - pool_pre_ping descarta conexiones cerradas por el proveedor
#   - check_same_thread solo aplica a SQLite
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args={"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
)

# =========================================================
#  SESIONES DE BASE DE DATOS
# =========================================================

SessionLocal = sessionmaker(
    autocommit=False,  # Transacciones explícitas
    autoflush=False,   # Flush explícito
    bind=engine
)

# **Base**: Base declarativa para definir modelos ORM
Base = declarative_base()

# =========================================================
#  DEPENDENCY INJECTION PARA FASTAPI
# =========================================================

def get_db():
    """
    Obtener sesión de base de datos para inyectar en endpoints.

    Cada request recibe su propia sesión, que se cierra siempre al terminar
    (incluso si el endpoint lanza una excepción). En pruebas se reemplaza
    mediante ``app.dependency_overrides[get_db]``.

    Yields:
        Session: Sesión SQLAlchemy lista para usar
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
