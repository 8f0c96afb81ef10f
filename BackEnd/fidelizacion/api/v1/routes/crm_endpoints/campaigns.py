"""
Router de campañas de marketing (mensajes de cumpleaños y promociones).

Los envíos por WhatsApp los arma el panel; la API guarda los ajustes y
aplica la pausa anti-spam entre envíos.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from fidelizacion.core.security import NotFoundError, PermissionDeniedError
from fidelizacion.db.database import get_db
from fidelizacion.schemas.campaign_schemas import CampaignSettingUpdate, RateLimitResponse
from fidelizacion.services.auth_service import require_staff
from fidelizacion.services.campaign_service import CampaignService

router = APIRouter(prefix="/api/campaigns", tags=["campaigns"], dependencies=[Depends(require_staff)])
logger = logging.getLogger(__name__)


@router.get("/settings")
def get_settings(db: Session = Depends(get_db)):
    """Ajustes de campaña como objeto {key: value}"""
    return CampaignService.get_settings(db)


@router.put("/settings")
def update_setting(data: CampaignSettingUpdate, db: Session = Depends(get_db)):
    """Guardar un ajuste existente; rate_limit no se puede editar (403)"""
    try:
        setting = CampaignService.update_setting(data.key, data.value, db)
        return {"key": setting.key, "value": setting.value}
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.post("/rate-limit/check", response_model=RateLimitResponse)
def check_rate_limit(db: Session = Depends(get_db)):
    """
    Registrar un envío de campaña.

    Returns:
        200 {"message": "OK"} o 429 {"message", "cooldown"} si se alcanzó
        el máximo de envíos dentro de la ventana
    """
    CampaignService.check_rate_limit(db)
    return RateLimitResponse(message="OK")
