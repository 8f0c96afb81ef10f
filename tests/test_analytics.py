# tests/test_analytics.py
from datetime import date, datetime, timezone

from fidelizacion.models.models import Cliente
from fidelizacion.services.analytics_service import AnalyticsService

from .conftest import bearer


def _add_client(db_session, phone, created_at=None, **fields):
    cliente = Cliente(nombre_completo=f"Cliente {phone}", numero_telefono=phone, **fields)
    if created_at is not None:
        cliente.created_at = created_at
    db_session.add(cliente)
    db_session.commit()
    return cliente


# ========================================
# Tendencia de nuevos clientes
# ========================================

def test_new_clients_trend_groups_by_month(client, staff_headers, db_session):
    _add_client(db_session, "5510000001", datetime(2025, 12, 31, 23, 59))
    _add_client(db_session, "5510000002", datetime(2026, 1, 15, 10, 0))
    _add_client(db_session, "5510000003", datetime(2026, 1, 31, 23, 30))
    _add_client(db_session, "5510000004", datetime(2026, 2, 28, 22, 0))
    _add_client(db_session, "5510000005", datetime(2026, 3, 1, 0, 0))

    r = client.get(
        "/api/analytics/new-clients-trend",
        headers=staff_headers,
        params={"start": "2026-01-01", "end": "2026-02-28"},
    )

    assert r.status_code == 200, r.text
    assert r.json() == [
        {"mes": "2026-01", "nuevos_clientes": 2},
        {"mes": "2026-02", "nuevos_clientes": 1},
    ]


def test_new_clients_trend_requires_both_dates(client, staff_headers):
    r = client.get("/api/analytics/new-clients-trend", headers=staff_headers, params={"start": "2026-01-01"})

    assert r.status_code == 400
    assert r.json() == {"message": "Se requieren fechas de inicio y fin."}


def test_new_clients_trend_rejects_malformed_date(client, staff_headers):
    r = client.get(
        "/api/analytics/new-clients-trend",
        headers=staff_headers,
        params={"start": "ayer", "end": "2026-02-28"},
    )

    assert r.status_code == 400
    assert any(e["field"].endswith("start") for e in r.json()["errors"])


def test_analytics_is_staff_only(client):
    client_token = bearer(1, "Cliente")

    assert client.get("/api/analytics/dashboard-summary").status_code == 401
    assert client.get("/api/analytics/dashboard-summary", headers=client_token).status_code == 403


# ========================================
# Dashboard y análisis de clientela
# ========================================

def test_new_clients_last_30_days(db_session):
    now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    _add_client(db_session, "5520000001", datetime(2026, 2, 20, 9, 0))
    _add_client(db_session, "5520000002", datetime(2026, 1, 1, 9, 0))

    summary = AnalyticsService.dashboard_summary(db_session, now=now)

    assert summary == {"kpis": {"newClientsLast30Days": 1}}


def test_dashboard_summary_endpoint_counts_recent_client(client, staff_headers, db_session):
    _add_client(db_session, "5530000001")

    r = client.get("/api/analytics/dashboard-summary", headers=staff_headers)

    assert r.status_code == 200
    assert r.json()["kpis"]["newClientsLast30Days"] == 1


def test_client_analysis_demographics(db_session):
    _add_client(db_session, "5540000001", fecha_nacimiento=date(2010, 3, 5), genero="Femenino")
    _add_client(db_session, "5540000002", fecha_nacimiento=date(1995, 3, 20), genero="Femenino")
    _add_client(db_session, "5540000003", fecha_nacimiento=date(1970, 12, 1))
    _add_client(db_session, "5540000004", genero="Masculino")

    analysis = AnalyticsService.client_analysis(db_session, today=date(2026, 6, 1))

    ages = {g["group_name"]: g["count"] for g in analysis["demographics"]["ageDistribution"]}
    assert ages == {"Menor de 20": 1, "20-29 años": 0, "30-39 años": 1, "40-49 años": 0, "50+ años": 1}

    genders = {g["group_name"]: g["count"] for g in analysis["demographics"]["genderDistribution"]}
    assert genders == {"Femenino": 2, "No especificado": 1, "Masculino": 1}

    birthdays = {b["mes"]: b["cantidad"] for b in analysis["birthdaysByMonth"]}
    assert len(analysis["birthdaysByMonth"]) == 12
    assert birthdays["Marzo"] == 2
    assert birthdays["Diciembre"] == 1
    assert sum(birthdays.values()) == 3
