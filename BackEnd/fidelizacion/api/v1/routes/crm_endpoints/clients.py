"""
Router de la cartera de clientes.

El personal (Administrador o Empleado) puede buscar, crear y editar
clientes; solo el Administrador puede eliminarlos.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from fidelizacion.core.security import ConflictError
from fidelizacion.db.crud import crud
from fidelizacion.db.database import get_db
from fidelizacion.schemas.client_schemas import ClientCreate, ClientResponse, ClientUpdate
from fidelizacion.services.auth_service import require_admin, require_staff

router = APIRouter(prefix="/api/clients", tags=["clients"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[ClientResponse], dependencies=[Depends(require_staff)])
def get_clients(
    search: Optional[str] = Query(None, description="Fragmento de nombre o teléfono"),
    db: Session = Depends(get_db)
):
    """Listar clientes ordenados por nombre, con búsqueda opcional"""
    return crud.search_clients(db, search)


@router.get("/birthdays", response_model=List[ClientResponse], dependencies=[Depends(require_staff)])
def get_birthday_clients(db: Session = Depends(get_db)):
    """Clientes que cumplen años hoy (campaña de cumpleaños)"""
    return crud.get_birthday_clients(db)


@router.post(
    "",
    response_model=ClientResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_staff)]
)
def create_client(client: ClientCreate, db: Session = Depends(get_db)):
    try:
        return crud.create_client(db, client)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get("/{client_id}", response_model=ClientResponse, dependencies=[Depends(require_staff)])
def get_client(client_id: int, db: Session = Depends(get_db)):
    client = crud.get_client_by_id(db, client_id)
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente no encontrado.")
    return client


@router.put("/{client_id}", response_model=ClientResponse, dependencies=[Depends(require_staff)])
def update_client(client_id: int, updates: ClientUpdate, db: Session = Depends(get_db)):
    try:
        client = crud.update_client(db, client_id, updates)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente no encontrado.")
    return client


@router.delete("/{client_id}", dependencies=[Depends(require_admin)])
def delete_client(client_id: int, db: Session = Depends(get_db)):
    if not crud.delete_client(db, client_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente no encontrado.")
    logger.info(f"Cliente {client_id} eliminado")
    return {"message": "Cliente eliminado exitosamente."}
