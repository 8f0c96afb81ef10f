# tests/conftest.py
import os

# La configuración se lee una sola vez al importar: definir antes de importar la app
os.environ["SECRET_KEY"] = "clave-secreta-solo-para-pruebas"
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from fidelizacion.core.init_roles import init_campaign_settings, init_roles
from fidelizacion.db.database import Base, get_db
from fidelizacion.models.models import Usuario
from fidelizacion.services import security_service

TEST_PASSWORD = "P@ssw0rd1"


@pytest.fixture
def session_factory():
    """
    Base de datos SQLite en memoria, nueva para cada prueba.

    StaticPool hace que todas las sesiones compartan la misma conexión, así
    la sesión de la prueba y la de cada request ven los mismos datos.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with TestingSessionLocal() as db:
        init_roles(db)
        init_campaign_settings(db)

    yield TestingSessionLocal

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(session_factory):
    """TestClient con get_db reemplazado por la base en memoria"""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    """
    Fábrica de usuarios del personal.

    Uso:
        user = make_user("a@x.com", id_rol=1)
        user = make_user("b@x.com", two_factor_secret=pyotp.random_base32())
    """
    def _make_user(email="a@x.com", password=TEST_PASSWORD, id_rol=2,
                   nombres="Ana", apellidos="Pérez", two_factor_secret=None):
        user = Usuario(
            nombres=nombres,
            apellidos=apellidos,
            email=email,
            password_hash=security_service.hash_password(password),
            id_rol=id_rol,
            two_factor_secret=two_factor_secret,
            is_two_factor_enabled=two_factor_secret is not None,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


def bearer(user_id, role, **extra):
    """Cabecera Authorization con un token final firmado para las pruebas"""
    token = security_service.create_access_token({"sub": str(user_id), "role": role, **extra})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(make_user):
    admin = make_user("admin@lacapital.com", id_rol=1, nombres="Admin")
    return bearer(admin.id, "Administrador")


@pytest.fixture
def staff_headers(make_user):
    empleado = make_user("empleado@lacapital.com", id_rol=2, nombres="Empleado")
    return bearer(empleado.id, "Empleado")
