"""
Router de analítica del panel (Dashboard y Análisis de clientes).

Solo personal autenticado. Los indicadores salen de la cartera de clientes.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from fidelizacion.db.database import get_db
from fidelizacion.services.analytics_service import AnalyticsService
from fidelizacion.services.auth_service import require_staff

router = APIRouter(prefix="/api/analytics", tags=["analytics"], dependencies=[Depends(require_staff)])
logger = logging.getLogger(__name__)


@router.get("/dashboard-summary")
def dashboard_summary(db: Session = Depends(get_db)):
    """
    Resumen del dashboard.

    Returns:
        {"kpis": {"newClientsLast30Days": n}}
    """
    return AnalyticsService.dashboard_summary(db)


@router.get("/client-analysis")
def client_analysis(db: Session = Depends(get_db)):
    """Distribución por edad y género, y cumpleaños por mes"""
    return AnalyticsService.client_analysis(db)


@router.get("/new-clients-trend")
def new_clients_trend(
    start: Optional[date] = Query(None, description="Fecha inicial (YYYY-MM-DD)"),
    end: Optional[date] = Query(None, description="Fecha final inclusiva (YYYY-MM-DD)"),
    db: Session = Depends(get_db)
):
    """
    Altas de clientes por mes dentro del rango.

    Returns:
        [{"mes": "YYYY-MM", "nuevos_clientes": n}]

    Raises:
        HTTPException 400: Falta start o end
    """
    if not start or not end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Se requieren fechas de inicio y fin."
        )
    return AnalyticsService.new_clients_trend(db, start, end)
