"""
Router del catálogo de productos del menú.

Incluye el menú público (sin autenticación) que consume la experiencia AR
y las operaciones del panel: el personal puede consultar y solo el
Administrador puede crear, editar o eliminar productos.

Características:
    - Menú público con solo productos activos
    - Activos digitales (modelo 3D, QR, imágenes) incluidos en cada producto
    - Eliminación en cascada de los activos digitales
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from fidelizacion.db.crud import crud
from fidelizacion.db.database import get_db
from fidelizacion.schemas.product_schemas import ProductCreate, ProductResponse, ProductUpdate
from fidelizacion.services.auth_service import require_admin, require_staff

router = APIRouter(prefix="/api/products", tags=["products"])
logger = logging.getLogger(__name__)


# =========================================================
# 🌐 Menú público
# =========================================================

@router.get("/public/menu", response_model=List[ProductResponse])
def get_public_menu(db: Session = Depends(get_db)):
    """Productos activos para el menú de clientes (no requiere token)"""
    return crud.get_products_list(db, only_active=True)


@router.get("/public/{product_id}", response_model=ProductResponse)
def get_public_product(product_id: int, db: Session = Depends(get_db)):
    product = crud.get_product_by_id(db, product_id, only_active=True)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Producto no encontrado.")
    return product


# =========================================================
# 🍽️ Gestión desde el panel
# =========================================================

@router.get("", response_model=List[ProductResponse], dependencies=[Depends(require_staff)])
def get_products(db: Session = Depends(get_db)):
    """Todos los productos, activos e inactivos, ordenados por ID"""
    return crud.get_products_list(db)


@router.get("/{product_id}", response_model=ProductResponse, dependencies=[Depends(require_staff)])
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = crud.get_product_by_id(db, product_id)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Producto no encontrado.")
    return product


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)]
)
def create_product(product: ProductCreate, db: Session = Depends(get_db)):
    """
    Crear un producto (solo Administrador).

    Validaciones:
        - nombre: requerido, máximo 100 caracteres
        - precio: mayor que 0 y hasta 10,000,000
        - categoria: requerida
    """
    return crud.create_product(db, product)


@router.put("/{product_id}", response_model=ProductResponse, dependencies=[Depends(require_admin)])
def update_product(product_id: int, updates: ProductUpdate, db: Session = Depends(get_db)):
    product = crud.update_product(db, product_id, updates)
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Producto no encontrado para actualizar."
        )
    return product


@router.delete("/{product_id}", dependencies=[Depends(require_admin)])
def delete_product(product_id: int, db: Session = Depends(get_db)):
    """Eliminar un producto y sus activos digitales (solo Administrador)"""
    if not crud.delete_product(db, product_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Producto no encontrado.")
    return {"message": "Producto eliminado exitosamente."}
