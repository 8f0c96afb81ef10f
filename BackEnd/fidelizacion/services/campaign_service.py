"""
Servicio de ajustes de campañas de marketing.

Los ajustes viven en la tabla CampaignSettings como pares clave → JSON.
La clave rate_limit guarda el contador anti-spam de envíos por WhatsApp:
{count, lastSent}. Es el único límite de frecuencia de toda la API.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from fidelizacion.core.config import settings
from fidelizacion.core.security import NotFoundError, PermissionDeniedError, RateLimitError
from fidelizacion.enums.enums import CampaignKey
from fidelizacion.models.models import CampaignSetting

logger = logging.getLogger(__name__)


class CampaignService:
    """Lectura/escritura de ajustes y control anti-spam de envíos"""

    @staticmethod
    def get_settings(db: Session) -> Dict[str, Any]:
        """Todos los ajustes como un objeto {key: value}"""
        return {row.key: row.value for row in db.query(CampaignSetting).all()}

    @staticmethod
    def update_setting(key: str, value: Any, db: Session) -> CampaignSetting:
        """
        Reemplazar el valor de un ajuste existente.

        El contador rate_limit es estado interno del control anti-spam y solo
        lo escribe check_rate_limit.

        Raises:
            NotFoundError: Si la clave no existe
            PermissionDeniedError: Si se intenta editar rate_limit
        """
        if key == CampaignKey.RATE_LIMIT.value:
            raise PermissionDeniedError("El ajuste rate_limit es interno y no se puede modificar.")

        setting = db.query(CampaignSetting).filter(CampaignSetting.key == key).first()
        if not setting:
            raise NotFoundError("Ajuste de campaña no encontrado.")

        setting.value = value
        db.commit()
        db.refresh(setting)

        logger.info(f"Ajuste de campaña actualizado: {key}")
        return setting

    @staticmethod
    def _parse_last_sent(raw: Optional[str]) -> Optional[datetime]:
        if not raw:
            return None
        try:
            parsed = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"lastSent con formato inválido: {raw}")
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    @staticmethod
    def _read_counter(raw: Any) -> Tuple[int, Optional[datetime]]:
        """Leer {count, lastSent}; un valor mal formado cuenta como contador vacío."""
        if not isinstance(raw, dict):
            if raw is not None:
                logger.warning(f"rate_limit con formato inválido, se reinicia: {raw!r}")
            return 0, None
        try:
            count = int(raw.get("count") or 0)
        except (TypeError, ValueError):
            logger.warning(f"rate_limit.count inválido, se reinicia: {raw!r}")
            return 0, None
        return count, CampaignService._parse_last_sent(raw.get("lastSent"))

    @staticmethod
    def check_rate_limit(db: Session, now: Optional[datetime] = None) -> None:
        """
        Registrar un envío si no se superó el límite.

        Si ya hay CAMPAIGN_RATE_LIMIT_MAX envíos y el último fue hace menos
        de la ventana, se rechaza. Si la ventana ya pasó el contador vuelve
        a 1; si no, se incrementa. lastSent siempre toma el instante actual.

        Raises:
            RateLimitError: Con los segundos que faltan en cooldown
        """
        now = now or datetime.now(timezone.utc)
        window = settings.CAMPAIGN_RATE_LIMIT_WINDOW_SECONDS
        key = CampaignKey.RATE_LIMIT.value

        setting = db.query(CampaignSetting).filter(CampaignSetting.key == key).first()
        if setting is None:
            setting = CampaignSetting(key=key, value={"count": 0, "lastSent": None})
            db.add(setting)

        count, last_sent = CampaignService._read_counter(setting.value)

        elapsed = (now - last_sent).total_seconds() if last_sent else math.inf

        if count >= settings.CAMPAIGN_RATE_LIMIT_MAX and elapsed < window:
            time_left = math.ceil(window - elapsed)
            raise RateLimitError(f"Límite alcanzado. Espera {time_left} segundos.", cooldown=time_left)

        count = 1 if elapsed >= window else count + 1

        # Asignar un dict nuevo para que SQLAlchemy detecte el cambio en la columna JSON
        setting.value = {"count": count, "lastSent": now.isoformat()}
        db.commit()
