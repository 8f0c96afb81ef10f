from fastapi import APIRouter
from .products import router as products_router
from .clients import router as clients_router
from .campaigns import router as campaigns_router
from .analytics import router as analytics_router

router = APIRouter()
router.include_router(products_router)
router.include_router(clients_router)
router.include_router(campaigns_router)
router.include_router(analytics_router)
