"""
Servicio de analítica del panel.

Calcula los indicadores que salen solo de la tabla Clientes: altas por mes,
altas de los últimos 30 días y distribución demográfica. Las métricas de
likes, comentarios, visitas e interacciones AR no se calculan aquí.
"""

import logging
from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from fidelizacion.models.models import Cliente

logger = logging.getLogger(__name__)

MONTH_NAMES = [
    "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
    "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
]

AGE_GROUPS = ["Menor de 20", "20-29 años", "30-39 años", "40-49 años", "50+ años"]

UNSPECIFIED_GENDER = "No especificado"


def _age_group(age: int) -> str:
    if age < 20:
        return AGE_GROUPS[0]
    if age < 30:
        return AGE_GROUPS[1]
    if age < 40:
        return AGE_GROUPS[2]
    if age < 50:
        return AGE_GROUPS[3]
    return AGE_GROUPS[4]


class AnalyticsService:
    """Indicadores de la cartera de clientes"""

    @staticmethod
    def new_clients_trend(db: Session, start: date, end: date) -> List[Dict]:
        """
        Altas de clientes agrupadas por mes dentro de [start, end].

        Ambas fechas son inclusivas (end cuenta el día completo).

        Returns:
            List[Dict]: [{"mes": "YYYY-MM", "nuevos_clientes": n}] ordenado por mes
        """
        lower = datetime.combine(start, time.min)
        upper = datetime.combine(end + timedelta(days=1), time.min)

        rows = (
            db.query(Cliente.created_at)
            .filter(Cliente.created_at >= lower, Cliente.created_at < upper)
            .order_by(Cliente.created_at.asc())
            .all()
        )

        months = Counter(created_at.strftime("%Y-%m") for (created_at,) in rows)

        logger.info(f"Tendencia de clientes {start} a {end}: {len(rows)} altas")
        return [{"mes": mes, "nuevos_clientes": total} for mes, total in sorted(months.items())]

    @staticmethod
    def new_clients_last_30_days(db: Session, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        since = (now - timedelta(days=30)).replace(tzinfo=None)
        return db.query(Cliente).filter(Cliente.created_at >= since).count()

    @staticmethod
    def dashboard_summary(db: Session, now: Optional[datetime] = None) -> Dict:
        """KPIs del dashboard que se calculan con la cartera de clientes"""
        return {
            "kpis": {
                "newClientsLast30Days": AnalyticsService.new_clients_last_30_days(db, now),
            }
        }

    @staticmethod
    def client_analysis(db: Session, today: Optional[date] = None) -> Dict:
        """
        Distribución de la clientela por edad, género y mes de cumpleaños.

        La edad se calcula como año actual menos año de nacimiento; los
        clientes sin fecha de nacimiento no cuentan en edad ni cumpleaños.
        """
        today = today or date.today()
        clients = db.query(Cliente.fecha_nacimiento, Cliente.genero).all()

        ages = Counter({group: 0 for group in AGE_GROUPS})
        genders: Counter = Counter()
        birthdays = [0] * 12

        for fecha_nacimiento, genero in clients:
            if fecha_nacimiento:
                ages[_age_group(today.year - fecha_nacimiento.year)] += 1
                birthdays[fecha_nacimiento.month - 1] += 1
            genders[genero or UNSPECIFIED_GENDER] += 1

        return {
            "demographics": {
                "ageDistribution": [{"group_name": g, "count": ages[g]} for g in AGE_GROUPS],
                "genderDistribution": [
                    {"group_name": g, "count": c} for g, c in genders.items()
                ],
            },
            "birthdaysByMonth": [
                {"mes": MONTH_NAMES[i], "cantidad": birthdays[i]} for i in range(12)
            ],
        }
