# tests/test_auth.py
from datetime import timedelta

import pyotp

from fidelizacion.models.models import Usuario
from fidelizacion.services import security_service

from .conftest import TEST_PASSWORD


def _login(client, email="a@x.com", password=TEST_PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


# ========================================
# Login sin 2FA
# ========================================

def test_login_without_2fa_returns_final_token(client, make_user):
    """Cuenta sin 2FA: el login devuelve directamente el token final con su rol."""
    user = make_user("a@x.com", id_rol=2)

    r = _login(client)

    assert r.status_code == 200, f"Esperado 200 pero se obtuvo {r.status_code}: {r.text}"
    body = r.json()
    assert set(body) == {"token"}
    claims = security_service.decode_access_token(body["token"])
    assert claims.role == "Empleado"
    assert claims.sub == str(user.id)
    assert claims.email == "a@x.com"


def test_login_admin_role_claim(client, make_user):
    make_user("jefe@x.com", id_rol=1)

    r = _login(client, "jefe@x.com")

    assert r.status_code == 200
    assert security_service.decode_access_token(r.json()["token"]).role == "Administrador"


def test_login_email_is_case_insensitive(client, make_user):
    make_user("a@x.com")

    r = _login(client, "A@X.COM")

    assert r.status_code == 200
    assert "token" in r.json()


def test_login_unknown_role_defaults_to_empleado(client, make_user):
    """Si el rol no existe en Roles se emite el token como Empleado."""
    make_user("huerfano@x.com", id_rol=99)

    r = _login(client, "huerfano@x.com")

    assert r.status_code == 200
    assert security_service.decode_access_token(r.json()["token"]).role == "Empleado"


def test_login_invalid_credentials_do_not_reveal_which(client, make_user):
    make_user("a@x.com")

    wrong_password = _login(client, "a@x.com", "Incorrecta1!")
    unknown_email = _login(client, "nadie@x.com", TEST_PASSWORD)

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"message": "Credenciales inválidas"}


def test_login_validation_error_returns_400(client):
    r = client.post("/api/auth/login", json={"email": "no-es-email"})

    assert r.status_code == 400
    fields = {e["field"] for e in r.json()["errors"]}
    assert "email" in fields
    assert "password" in fields


# ========================================
# Login con 2FA
# ========================================

def test_login_with_2fa_never_returns_final_token(client, make_user):
    """Con 2FA activo el paso 1 solo entrega el token temporal."""
    make_user("a@x.com", two_factor_secret=pyotp.random_base32())

    r = _login(client)

    assert r.status_code == 200
    body = r.json()
    assert body["twoFactorRequired"] is True
    assert "token" not in body
    claims = security_service.decode_pre_auth_token(body["tempToken"])
    assert claims.is_pre_auth is True


def test_verify_2fa_with_correct_code(client, make_user):
    secret = pyotp.random_base32()
    user = make_user("a@x.com", id_rol=2, two_factor_secret=secret)
    temp_token = _login(client).json()["tempToken"]

    r = client.post(
        "/api/auth/verify-2fa",
        json={"tempToken": temp_token, "twoFactorCode": pyotp.TOTP(secret).now()},
    )

    assert r.status_code == 200, r.text
    claims = security_service.decode_access_token(r.json()["token"])
    assert claims.role == "Empleado"
    assert claims.sub == str(user.id)


def test_verify_2fa_with_wrong_code(client, make_user):
    secret = pyotp.random_base32()
    make_user("a@x.com", two_factor_secret=secret)
    temp_token = _login(client).json()["tempToken"]
    wrong = str((int(pyotp.TOTP(secret).now()) + 1) % 1_000_000).zfill(6)

    r = client.post("/api/auth/verify-2fa", json={"tempToken": temp_token, "twoFactorCode": wrong})

    assert r.status_code == 401
    assert r.json() == {"message": "Código 2FA incorrecto."}


def test_verify_2fa_rejects_final_token_as_temp_token(client, make_user):
    secret = pyotp.random_base32()
    user = make_user("a@x.com", two_factor_secret=secret)
    final = security_service.create_access_token({"sub": str(user.id), "role": "Empleado"})

    r = client.post(
        "/api/auth/verify-2fa",
        json={"tempToken": final, "twoFactorCode": pyotp.TOTP(secret).now()},
    )

    assert r.status_code == 401
    assert r.json() == {"message": "Token temporal inválido o expirado."}


def test_verify_2fa_rejects_expired_temp_token(client, make_user):
    secret = pyotp.random_base32()
    user = make_user("a@x.com", two_factor_secret=secret)
    expired = security_service.create_pre_auth_token(user.id, expires_delta=timedelta(seconds=-1))

    r = client.post(
        "/api/auth/verify-2fa",
        json={"tempToken": expired, "twoFactorCode": pyotp.TOTP(secret).now()},
    )

    assert r.status_code == 401
    assert r.json() == {"message": "Token temporal inválido o expirado."}


def test_verify_2fa_for_deleted_account(client):
    temp = security_service.create_pre_auth_token(12345)

    r = client.post("/api/auth/verify-2fa", json={"tempToken": temp, "twoFactorCode": "123456"})

    assert r.status_code == 401


# ========================================
# Registro
# ========================================

def test_register_staff(client, db_session):
    payload = {
        "nombres": "Carlos",
        "apellidos": "Gómez",
        "email": "Carlos@LaCapital.com",
        "password": "Segura#2024",
        "id_rol": 2,
    }

    r = client.post("/api/auth/register", json=payload)

    assert r.status_code == 201, r.text
    body = r.json()
    assert body["user"]["email"] == "carlos@lacapital.com"
    assert body["user"]["rol"] == "Empleado"
    assert "password" not in body["user"]

    stored = db_session.query(Usuario).filter(Usuario.email == "carlos@lacapital.com").first()
    assert stored is not None
    assert stored.password_hash != "Segura#2024"
    assert security_service.verify_password("Segura#2024", stored.password_hash)
    assert stored.is_two_factor_enabled is False


def test_register_duplicate_email(client, make_user):
    make_user("a@x.com")
    payload = {"nombres": "Otra", "apellidos": "", "email": "a@x.com",
               "password": "Segura#2024", "id_rol": 2}

    r = client.post("/api/auth/register", json=payload)

    assert r.status_code == 409, f"Esperado 409 pero se obtuvo {r.status_code}"
    assert r.json()["message"] == "El correo electrónico ya está registrado."


def test_register_weak_password(client):
    payload = {"nombres": "Débil", "apellidos": "", "email": "d@x.com",
               "password": "password", "id_rol": 2}

    r = client.post("/api/auth/register", json=payload)

    assert r.status_code == 400
    assert any(e["field"] == "password" for e in r.json()["errors"])


def test_register_rejects_unknown_role_id(client):
    payload = {"nombres": "Rol", "apellidos": "", "email": "r@x.com",
               "password": "Segura#2024", "id_rol": 3}

    r = client.post("/api/auth/register", json=payload)

    assert r.status_code == 400


def _admin_payload(email="nuevo.admin@x.com"):
    return {"nombres": "Nuevo", "apellidos": "Admin", "email": email,
            "password": "Segura#2024", "id_rol": 1}


def test_register_first_administrator_is_allowed(client):
    """Sin ningún Administrador, el registro público puede crear el primero."""
    r = client.post("/api/auth/register", json=_admin_payload())

    assert r.status_code == 201, r.text
    assert r.json()["user"]["rol"] == "Administrador"


def test_register_administrator_rejected_when_one_exists(client, make_user, db_session):
    make_user("jefe@x.com", id_rol=1)

    r = client.post("/api/auth/register", json=_admin_payload())

    assert r.status_code == 403
    assert r.json() == {"message": "Solo un administrador puede crear cuentas de Administrador."}
    assert db_session.query(Usuario).filter(Usuario.email == "nuevo.admin@x.com").first() is None


def test_public_register_cannot_reach_admin_routes(client, make_user):
    make_user("jefe@x.com", id_rol=1)
    payload = _admin_payload("intruso@x.com")

    assert client.post("/api/auth/register", json=payload).status_code == 403
    assert client.post("/api/auth/register", json={**payload, "id_rol": 2}).status_code == 201

    token = _login(client, "intruso@x.com", "Segura#2024").json()["token"]
    r = client.get("/api/users", headers={"Authorization": f"Bearer {token}"})

    assert r.status_code == 403


def test_admin_can_create_another_administrator(client, admin_headers):
    r = client.post("/api/users", headers=admin_headers, json=_admin_payload())

    assert r.status_code == 201, r.text
    assert r.json()["user"]["rol"] == "Administrador"


def test_register_rejects_password_over_72_bytes(client):
    base = {"nombres": "Largo", "apellidos": "", "email": "l@x.com", "id_rol": 2}

    too_many_chars = client.post("/api/auth/register", json={**base, "password": "Aa1!" + "x" * 69})
    too_many_bytes = client.post("/api/auth/register", json={**base, "password": "Aa1!" + "ñ" * 35})

    assert too_many_chars.status_code == 400
    assert too_many_bytes.status_code == 400
    assert any(e["field"] == "password" for e in too_many_bytes.json()["errors"])

    fits = client.post("/api/auth/register", json={**base, "password": "Aa1!" + "x" * 68})
    assert fits.status_code == 201, fits.text
