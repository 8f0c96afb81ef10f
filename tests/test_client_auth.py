# tests/test_client_auth.py
from fidelizacion.models.models import Cliente, CuentaCliente
from fidelizacion.services import security_service

REGISTER_PAYLOAD = {
    "nombre_completo": "María López",
    "email": "Maria@Correo.com",
    "numero_telefono": "5512345678",
    "password": "clave1234",
}


def test_register_creates_client_and_account(client, db_session):
    r = client.post("/api/client-auth/register", json=REGISTER_PAYLOAD)

    assert r.status_code == 201, r.text
    body = r.json()
    assert body["message"] == "¡Cuenta creada con éxito!"
    assert body["user"]["email"] == "maria@correo.com"
    assert "password_hash" not in body["user"]

    cuenta = db_session.query(CuentaCliente).filter(CuentaCliente.email == "maria@correo.com").one()
    assert cuenta.cliente.nombre_completo == "María López"
    assert cuenta.cliente.numero_telefono == "5512345678"


def test_register_duplicate_email_leaves_no_orphan_client(client, db_session):
    client.post("/api/client-auth/register", json=REGISTER_PAYLOAD)
    second = {**REGISTER_PAYLOAD, "numero_telefono": "5599999999"}

    r = client.post("/api/client-auth/register", json=second)

    assert r.status_code == 409
    assert r.json()["message"] == "Este correo electrónico ya está registrado."
    db_session.expire_all()
    assert db_session.query(Cliente).count() == 1


def test_register_validation(client):
    r = client.post("/api/client-auth/register", json={**REGISTER_PAYLOAD, "password": "corta"})

    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "password"


def test_register_rejects_password_longer_than_bcrypt_limit(client):
    long_password = "Aa1!" + "\u00f1" * 35  # 39 caracteres, 74 bytes en UTF-8

    r = client.post("/api/client-auth/register", json={**REGISTER_PAYLOAD, "password": long_password})

    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "password"


def test_client_login_and_profile(client):
    client.post("/api/client-auth/register", json=REGISTER_PAYLOAD)

    r = client.post("/api/client-auth/login", json={"email": "maria@correo.com", "password": "clave1234"})

    assert r.status_code == 200, r.text
    token = r.json()["token"]
    claims = security_service.decode_access_token(token)
    assert claims.role == "Cliente"

    me = client.get("/api/client-auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["nombre_completo"] == "María López"


def test_client_token_lasts_seven_days(client):
    client.post("/api/client-auth/register", json=REGISTER_PAYLOAD)
    token = client.post(
        "/api/client-auth/login", json={"email": "maria@correo.com", "password": "clave1234"}
    ).json()["token"]

    claims = security_service.decode_access_token(token)
    staff = security_service.decode_access_token(
        security_service.create_access_token({"sub": "1", "role": "Empleado"})
    )

    expected = 7 * 24 * 3600 - 13 * 3600
    assert abs((claims.exp - staff.exp) - expected) <= 5


def test_client_login_wrong_password(client):
    client.post("/api/client-auth/register", json=REGISTER_PAYLOAD)

    r = client.post("/api/client-auth/login", json={"email": "maria@correo.com", "password": "otra-clave"})

    assert r.status_code == 401
    assert r.json() == {"message": "Credenciales inválidas"}
