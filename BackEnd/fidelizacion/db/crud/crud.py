"""
Módulo CRUD (Create, Read, Update, Delete) para productos y clientes.

Este módulo proporciona las operaciones de base de datos del catálogo del
menú y de la cartera de clientes del restaurante. Las funciones devuelven
None / False cuando el registro no existe; los routers traducen eso a 404.

Patrones:
    - CRUD básico: Operaciones estándar sobre Productos y Clientes
    - Búsqueda: Coincidencia parcial sin distinguir mayúsculas
    - Transacciones: Rollback automático en error de unicidad

Casos de uso:
    - Mantener el menú (precios, categorías, activo/inactivo)
    - Menú público de la experiencia AR
    - Alta y búsqueda de clientes desde el panel
    - Listado de cumpleañeros del día para campañas
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from fidelizacion.core.security import ConflictError
from fidelizacion.models import models
from fidelizacion.schemas.client_schemas import ClientCreate, ClientUpdate
from fidelizacion.schemas.product_schemas import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)


# =========================================================
# 🍽️ PRODUCTOS
# =========================================================

def get_product_by_id(
    db: Session,
    product_id: int,
    only_active: bool = False
) -> Optional[models.Producto]:
    """
    Obtener un producto por su ID con sus activos digitales.

    Args:
        db (Session): Sesión de base de datos SQLAlchemy
        product_id (int): ID del producto
        only_active (bool): Si True, un producto inactivo cuenta como inexistente

    Returns:
        Optional[models.Producto]: El producto si existe, None si no
    """
    query = (
        db.query(models.Producto)
        .options(joinedload(models.Producto.activos_digitales))
        .filter(models.Producto.id == product_id)
    )
    if only_active:
        query = query.filter(models.Producto.activo.is_(True))
    return query.first()


def get_products_list(db: Session, only_active: bool = False) -> List[models.Producto]:
    """
    Listar productos ordenados por ID.

    El menú público usa only_active=True para ocultar los productos
    desactivados desde el panel.
    """
    query = db.query(models.Producto).options(joinedload(models.Producto.activos_digitales))
    if only_active:
        query = query.filter(models.Producto.activo.is_(True))
    return query.order_by(models.Producto.id.asc()).all()


def create_product(db: Session, product: ProductCreate) -> models.Producto:
    """Crear un producto; siempre nace activo."""
    db_product = models.Producto(
        nombre=product.nombre,
        descripcion=product.descripcion,
        precio=product.precio,
        categoria=product.categoria,
        activo=True,
    )
    db.add(db_product)
    db.commit()
    db.refresh(db_product)

    logger.info(f"Producto creado con ID {db_product.id}")
    return db_product


def update_product(
    db: Session,
    product_id: int,
    updates: ProductUpdate
) -> Optional[models.Producto]:
    """
    Actualizar un producto existente.

    Returns:
        Optional[models.Producto]: Producto actualizado, o None si no existe
    """
    db_product = get_product_by_id(db, product_id)
    if not db_product:
        return None

    for key, value in updates.model_dump(exclude_unset=True).items():
        if key == "activo" and value is None:
            continue
        setattr(db_product, key, value)

    db.commit()
    db.refresh(db_product)
    return db_product


def delete_product(db: Session, product_id: int) -> bool:
    """
    Eliminar un producto y, antes, sus activos digitales.

    Returns:
        bool: True si fue eliminado, False si no existe
    """
    db_product = get_product_by_id(db, product_id)
    if not db_product:
        return False

    if db_product.activos_digitales is not None:
        db.delete(db_product.activos_digitales)
        db.flush()
    db.delete(db_product)
    db.commit()

    logger.info(f"Producto {product_id} eliminado")
    return True


# =========================================================
# 👥 CLIENTES
# =========================================================

def get_client_by_id(db: Session, client_id: int) -> Optional[models.Cliente]:
    return db.query(models.Cliente).filter(models.Cliente.id == client_id).first()


def search_clients(db: Session, search: Optional[str] = None) -> List[models.Cliente]:
    """
    Listar clientes ordenados por nombre.

    Args:
        db (Session): Sesión de base de datos SQLAlchemy
        search (Optional[str]): Texto a buscar dentro del nombre o del teléfono
            (sin distinguir mayúsculas)

    Returns:
        List[models.Cliente]: Clientes que cumplen el criterio

    Example:
        search_clients(db, "ana")      # Ana María, Mariana...
        search_clients(db, "5512")     # por fragmento de teléfono
    """
    query = db.query(models.Cliente)
    term = (search or "").strip()
    if term:
        pattern = f"%{term}%"
        query = query.filter(
            or_(
                models.Cliente.nombre_completo.ilike(pattern),
                models.Cliente.numero_telefono.ilike(pattern),
            )
        )
    return query.order_by(models.Cliente.nombre_completo.asc()).all()


def get_birthday_clients(db: Session, today: Optional[date] = None) -> List[models.Cliente]:
    """Clientes que cumplen años en la fecha indicada (por defecto hoy)."""
    today = today or date.today()
    clients = (
        db.query(models.Cliente)
        .filter(models.Cliente.fecha_nacimiento.isnot(None))
        .order_by(models.Cliente.nombre_completo.asc())
        .all()
    )
    return [
        c for c in clients
        if c.fecha_nacimiento.month == today.month and c.fecha_nacimiento.day == today.day
    ]


def create_client(db: Session, client: ClientCreate) -> models.Cliente:
    """
    Crear un cliente desde el panel.

    Raises:
        ConflictError: Si el número de teléfono ya está registrado
    """
    db_client = models.Cliente(**client.model_dump())
    db.add(db_client)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("El número de teléfono ya está registrado.")

    db.refresh(db_client)
    logger.info(f"Cliente creado con ID {db_client.id}")
    return db_client


def update_client(
    db: Session,
    client_id: int,
    updates: ClientUpdate
) -> Optional[models.Cliente]:
    """
    Actualizar solo los campos enviados de un cliente.

    Raises:
        ConflictError: Si el nuevo teléfono pertenece a otro cliente
    """
    db_client = get_client_by_id(db, client_id)
    if not db_client:
        return None

    for key, value in updates.model_dump(exclude_unset=True).items():
        if key in ("nombre_completo", "numero_telefono") and not value:
            continue
        setattr(db_client, key, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("El número de teléfono ya está registrado.")

    db.refresh(db_client)
    return db_client


def delete_client(db: Session, client_id: int) -> bool:
    """Eliminar un cliente (y su cuenta de acceso, si tiene)."""
    db_client = get_client_by_id(db, client_id)
    if not db_client:
        return False

    db.delete(db_client)
    db.commit()
    return True
