# tests/test_two_factor.py
from datetime import datetime, timedelta, timezone

import pyotp
import pytest

from fidelizacion.models.models import Usuario
from fidelizacion.services.auth_service import TwoFactorAuthService

from .conftest import bearer

INSTANT = datetime(2026, 3, 14, 12, 0, 10, tzinfo=timezone.utc)


def _reload(db_session, user_id):
    db_session.expire_all()
    return db_session.query(Usuario).filter(Usuario.id == user_id).first()


# ========================================
# Motor TOTP
# ========================================

def test_totp_accepts_one_step_of_skew():
    secret = pyotp.random_base32()
    totp = pyotp.TOTP(secret)

    assert TwoFactorAuthService.verify_totp_code(secret, totp.at(INSTANT), for_time=INSTANT)
    assert TwoFactorAuthService.verify_totp_code(
        secret, totp.at(INSTANT - timedelta(seconds=30)), for_time=INSTANT
    )
    assert TwoFactorAuthService.verify_totp_code(
        secret, totp.at(INSTANT + timedelta(seconds=30)), for_time=INSTANT
    )


def _secret_with_distinct_edge_codes():
    """Secreto cuyos códigos a ±2 pasos no coinciden con ninguno de la ventana."""
    for _ in range(50):
        secret = pyotp.random_base32()
        totp = pyotp.TOTP(secret)
        window = {totp.at(INSTANT, offset) for offset in (-1, 0, 1)}
        edges = {totp.at(INSTANT - timedelta(seconds=60)), totp.at(INSTANT + timedelta(seconds=60))}
        if not window & edges:
            return secret
    pytest.fail("No se encontró un secreto con códigos distintos en los bordes")


def test_totp_rejects_codes_two_steps_away():
    secret = _secret_with_distinct_edge_codes()
    totp = pyotp.TOTP(secret)

    assert not TwoFactorAuthService.verify_totp_code(
        secret, totp.at(INSTANT - timedelta(seconds=60)), for_time=INSTANT
    )
    assert not TwoFactorAuthService.verify_totp_code(
        secret, totp.at(INSTANT + timedelta(seconds=60)), for_time=INSTANT
    )


def test_totp_rejects_garbage():
    secret = pyotp.random_base32()

    assert not TwoFactorAuthService.verify_totp_code(secret, "")
    assert not TwoFactorAuthService.verify_totp_code(secret, "abcdef")
    assert not TwoFactorAuthService.verify_totp_code("", "123456")
    assert not TwoFactorAuthService.verify_totp_code("no base32!", "123456")


def test_provisioning_uri_uses_issuer():
    uri = TwoFactorAuthService.get_provisioning_uri("a@x.com", pyotp.random_base32())

    assert uri.startswith("otpauth://totp/")
    assert "issuer=La%20Capital%20Panel" in uri


# ========================================
# Endpoints /api/2fa
# ========================================

def test_setup_returns_secret_and_qr_without_persisting(client, make_user, db_session):
    """Llamar /setup dos veces sin /verify no cambia el estado guardado."""
    user = make_user("a@x.com")
    headers = bearer(user.id, "Empleado")

    first = client.post("/api/2fa/setup", headers=headers)
    second = client.post("/api/2fa/setup", headers=headers)

    assert first.status_code == 200, first.text
    assert first.json()["qrCodeUrl"].startswith("data:image/png;base64,")
    assert first.json()["secret"] != second.json()["secret"]

    stored = _reload(db_session, user.id)
    assert stored.two_factor_secret is None
    assert stored.is_two_factor_enabled is False


def test_verify_setup_enables_2fa(client, make_user, db_session):
    user = make_user("a@x.com")
    headers = bearer(user.id, "Empleado")
    secret = client.post("/api/2fa/setup", headers=headers).json()["secret"]

    r = client.post(
        "/api/2fa/verify",
        headers=headers,
        json={"token": pyotp.TOTP(secret).now(), "secret": secret},
    )

    assert r.status_code == 200
    assert r.json() == {"verified": True}
    stored = _reload(db_session, user.id)
    assert stored.is_two_factor_enabled is True
    assert stored.two_factor_secret == secret
    assert stored.two_factor_enabled_at is not None

    # El siguiente login ya exige el segundo paso
    login = client.post("/api/auth/login", json={"email": "a@x.com", "password": "P@ssw0rd1"})
    assert login.json()["twoFactorRequired"] is True


def test_verify_setup_with_wrong_code(client, make_user, db_session):
    user = make_user("a@x.com")
    headers = bearer(user.id, "Empleado")
    secret = pyotp.random_base32()
    wrong = str((int(pyotp.TOTP(secret).now()) + 1) % 1_000_000).zfill(6)

    r = client.post("/api/2fa/verify", headers=headers, json={"token": wrong, "secret": secret})

    assert r.status_code == 400
    assert r.json() == {"verified": False, "message": "El código de verificación es incorrecto."}
    assert _reload(db_session, user.id).is_two_factor_enabled is False


def test_verify_setup_rejects_oversized_secret(client, make_user, db_session):
    user = make_user("a@x.com")
    headers = bearer(user.id, "Empleado")
    secret = pyotp.random_base32(length=80)

    r = client.post(
        "/api/2fa/verify",
        headers=headers,
        json={"token": pyotp.TOTP(secret).now(), "secret": secret},
    )

    assert r.status_code == 400
    assert any(e["field"] == "secret" for e in r.json()["errors"])
    assert _reload(db_session, user.id).two_factor_secret is None


def test_disable_and_status(client, make_user, db_session):
    user = make_user("a@x.com", two_factor_secret=pyotp.random_base32())
    headers = bearer(user.id, "Empleado")

    assert client.get("/api/2fa/status", headers=headers).json()["enabled"] is True

    r = client.post("/api/2fa/disable", headers=headers)

    assert r.status_code == 200
    assert r.json()["success"] is True
    stored = _reload(db_session, user.id)
    assert stored.is_two_factor_enabled is False
    assert stored.two_factor_secret is None
    assert client.get("/api/2fa/status", headers=headers).json() == {"enabled": False, "enabled_at": None}


def test_2fa_routes_require_token(client):
    assert client.post("/api/2fa/setup").status_code == 401
