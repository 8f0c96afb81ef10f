from fastapi import APIRouter
from .autentication import router as autentication_router
from .verficacion2p import router as verficacion2p_router
from .client_auth import router as client_auth_router
from .gestionusurios import router as gestionusurios_router


router = APIRouter()
router.include_router(autentication_router)
router.include_router(verficacion2p_router)
router.include_router(client_auth_router)
router.include_router(gestionusurios_router)
