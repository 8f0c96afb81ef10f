"""
Punto de entrada principal de la aplicación FastAPI.

API del Sistema de Fidelización La Capital: autenticación del personal con
verificación en dos pasos, cuentas de clientes, catálogo del menú, cartera
de clientes y campañas de marketing.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from fidelizacion.api.v1.routes.auth_endpoints import router as auth_router
from fidelizacion.api.v1.routes.crm_endpoints import router as crm_router
from fidelizacion.core.config import settings
from fidelizacion.core.init_roles import init_campaign_settings, init_roles
from fidelizacion.core.security import MissingTokenError, RateLimitError
from fidelizacion.db.database import Base, SessionLocal, engine
from fidelizacion.models import models  # noqa: F401  registra las tablas en Base

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("fidelizacion")

# Sin SECRET_KEY no se puede firmar ningún token: la aplicación no arranca
settings.validate_security()


def initialize_database():
    """
    Inicializa la base de datos creando tablas y datos básicos si no existen.

    Utiliza create_all (no recrea tablas existentes) y luego inserta los
    roles y los ajustes de campaña que falten.
    """
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("✅ Tablas de base de datos verificadas/creadas")

        with SessionLocal() as db:
            init_roles(db)
            init_campaign_settings(db)

    except Exception as e:
        logger.error(f"❌ Error al inicializar la base de datos: {e}")
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestiona el ciclo de vida de la aplicación.

    Args:
        app (FastAPI): Instancia de la aplicación.
    """
    logger.info("🚀 Iniciando aplicación...")
    initialize_database()
    yield
    logger.info("🛑 Cerrando aplicación...")


# Crear instancia FastAPI
app = FastAPI(
    title="Sistema de Fidelización La Capital",
    description="API del panel de administración y de la experiencia de clientes",
    version="1.0.0",
    lifespan=lifespan
)


# =========================================================
# ⚠️ Manejadores globales de errores
# =========================================================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Errores de validación de los DTOs → 400 {"errors": [{field, msg}]}"""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "msg": err.get("msg", "Valor inválido"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"errors": errors})


@app.exception_handler(MissingTokenError)
async def missing_token_handler(request: Request, exc: MissingTokenError):
    return Response(
        status_code=status.HTTP_401_UNAUTHORIZED,
        headers={"WWW-Authenticate": "Bearer"}
    )


@app.exception_handler(RateLimitError)
async def rate_limit_handler(request: Request, exc: RateLimitError):
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"message": str(exc), "cooldown": exc.cooldown}
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Error no controlado en {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Ocurrió un error en el servidor."}
    )


# Incluir routers de endpoints
app.include_router(auth_router)
app.include_router(crm_router)


# Configurar middleware CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root():
    """
    Endpoint raíz para verificar que la API está funcionando.
    """
    return {"message": "¡Bienvenido a la API del Sistema de Fidelización La Capital!"}


@app.get("/health")
def health():
    return {"status": "ok"}
