import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import models  # noqa: F401
from app.config import get_settings
from app.database import Base, SessionLocal, engine
from app.grid.errores import PersistenciaError, PlanError, ValidacionError

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def _seed_admin_user() -> None:
    """Create the admin account from settings if it does not exist yet."""
    from app.services.auth_service import asegurar_admin

    db = SessionLocal()
    try:
        asegurar_admin(db)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.CREAR_TABLAS:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured.")
    _seed_admin_user()
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PlanError)
async def plan_error_handler(request: Request, exc: PlanError) -> JSONResponse:
    """Map every plan-engine error to its status code and a uniform body."""
    body = {"detail": exc.mensaje, "tipo": exc.tipo, "regla": None, "filas": [], "riesgo_perdida": False}
    if isinstance(exc, ValidacionError):
        body["regla"] = exc.regla
        body["filas"] = exc.filas
    if isinstance(exc, PersistenciaError):
        body["riesgo_perdida"] = exc.riesgo_perdida
    logger.warning("%s %s -> %d %s: %s", request.method, request.url.path, exc.status_code, exc.tipo, exc.mensaje)
    return JSONResponse(status_code=exc.status_code, content=body)


@app.get(f"{settings.API_PREFIX}/health")
def health_check():
    return {"status": "ok", "app": settings.APP_NAME}


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

from app.routers import auth  # noqa: E402

app.include_router(auth.router, prefix=f"{settings.API_PREFIX}/auth", tags=["Auth"])

# Department options and reference data
from app.routers import catalogos  # noqa: E402

app.include_router(
    catalogos.router,
    prefix=f"{settings.API_PREFIX}/catalogos",
    tags=["Catálogos"],
)

# Monthly plan editing sessions
from app.routers import plan_mensual  # noqa: E402

app.include_router(
    plan_mensual.router,
    prefix=f"{settings.API_PREFIX}/plan-mensual",
    tags=["Plan Mensual"],
)

# Plan snapshots
from app.routers import plan_versiones  # noqa: E402

app.include_router(
    plan_versiones.router,
    prefix=f"{settings.API_PREFIX}/plan-versiones",
    tags=["Plan Versiones"],
)

# Exportación (Excel)
from app.routers import exportacion  # noqa: E402

app.include_router(
    exportacion.router,
    prefix=f"{settings.API_PREFIX}/exportar",
    tags=["Exportación"],
)
