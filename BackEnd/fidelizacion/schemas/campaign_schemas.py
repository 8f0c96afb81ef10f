from typing import Any
from pydantic import BaseModel, Field


class CampaignSettingUpdate(BaseModel):
    """Guardar un ajuste de campaña (ej: el mensaje de cumpleaños)"""
    key: str = Field(..., min_length=1, max_length=100)
    value: Any


class RateLimitResponse(BaseModel):
    message: str
