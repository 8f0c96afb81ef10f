from enum import Enum

class RoleName(str, Enum):
    ADMINISTRADOR = "Administrador"
    EMPLEADO = "Empleado"
    CLIENTE = "Cliente"

class TokenType(str, Enum):
    ACCESS = "access"
    PRE_AUTH = "pre_auth"

class CampaignKey(str, Enum):
    BIRTHDAY = "birthday_campaign"
    PROMO = "promo_campaign"
    RATE_LIMIT = "rate_limit"
