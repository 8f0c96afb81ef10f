from decimal import Decimal
from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProductBase(BaseModel):
    """Campos editables de un producto del menú"""
    nombre: str = Field(..., min_length=1, max_length=100)
    descripcion: Optional[str] = None
    precio: Decimal = Field(..., gt=0, le=10_000_000)
    categoria: str = Field(..., min_length=1, max_length=100)

    @field_validator('nombre', 'categoria')
    def strip_value(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("El campo es requerido")
        return v


class ProductCreate(ProductBase):
    pass


class ProductUpdate(ProductBase):
    activo: Optional[bool] = None


class DigitalAssetResponse(BaseModel):
    id: int
    url_modelo_3d: Optional[str] = None
    url_qr_code: Optional[str] = None
    urls_imagenes: Optional[Dict[str, str]] = None

    model_config = ConfigDict(from_attributes=True)


class ProductResponse(BaseModel):
    id: int
    nombre: str
    descripcion: Optional[str] = None
    precio: float
    categoria: str
    activo: bool
    activos_digitales: Optional[DigitalAssetResponse] = None

    model_config = ConfigDict(from_attributes=True)
