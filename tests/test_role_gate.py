# tests/test_role_gate.py
from datetime import timedelta

from fidelizacion.services import security_service

from .conftest import bearer


def test_missing_token_returns_empty_401(client):
    """Ruta protegida sin cabecera Authorization → 401 sin cuerpo."""
    r = client.get("/api/clients")

    assert r.status_code == 401
    assert r.content == b""
    assert r.headers.get("www-authenticate") == "Bearer"


def test_non_bearer_scheme_counts_as_missing(client):
    r = client.get("/api/clients", headers={"Authorization": "Basic dXNlcjpwYXNz"})

    assert r.status_code == 401


def test_invalid_token_returns_403(client):
    r = client.get("/api/clients", headers={"Authorization": "Bearer no-es-un-token"})

    assert r.status_code == 403
    assert r.json() == {"message": "Token inválido o expirado."}


def test_expired_token_returns_403(client):
    token = security_service.create_access_token(
        {"sub": "1", "role": "Empleado"}, expires_delta=timedelta(seconds=-5)
    )

    r = client.get("/api/clients", headers={"Authorization": f"Bearer {token}"})

    assert r.status_code == 403


def test_pre_auth_token_is_rejected_on_protected_routes(client, make_user):
    """El token temporal del paso 1 no autoriza ninguna ruta."""
    user = make_user("a@x.com")
    temp = security_service.create_pre_auth_token(user.id)
    headers = {"Authorization": f"Bearer {temp}"}

    assert client.get("/api/clients", headers=headers).status_code == 403
    assert client.get("/api/users/me", headers=headers).status_code == 403
    assert client.post("/api/2fa/setup", headers=headers).status_code == 403


def test_empleado_on_admin_route_gets_explicit_403(client, staff_headers):
    r = client.get("/api/users", headers=staff_headers)

    assert r.status_code == 403
    assert r.json() == {"message": "Acceso denegado: Se requiere rol de Administrador."}


def test_client_token_on_staff_route_is_rejected(client):
    headers = bearer(1, "Cliente")

    assert client.get("/api/clients", headers=headers).status_code == 403
    assert client.get("/api/products", headers=headers).status_code == 403
    assert client.get("/api/campaigns/settings", headers=headers).status_code == 403


def test_staff_token_on_client_route_is_rejected(client, staff_headers):
    assert client.get("/api/client-auth/me", headers=staff_headers).status_code == 403


def test_token_for_deleted_user_returns_401(client):
    r = client.get("/api/users/me", headers=bearer(9999, "Empleado"))

    assert r.status_code == 401


def test_public_routes_need_no_token(client):
    assert client.get("/").json() == {
        "message": "¡Bienvenido a la API del Sistema de Fidelización La Capital!"
    }
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/api/products/public/menu").status_code == 200
