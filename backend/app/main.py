import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.database import create_tables
from app.engine.errors import EngineError
from app.api.v1.shifts import router as shifts_router
from app.api.v1.compliance import router as compliance_router
from app.api.v1.absences import absences_router, leave_balances_router
from app.api.v1.benefits import router as benefits_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
ROUTERS = (
    shifts_router,
    compliance_router,
    absences_router,
    leave_balances_router,
    benefits_router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Schéma créé au démarrage en local ; Alembic en déploiement
    if settings.APP_ENV == "development":
        await create_tables()
    logger.info("Unilien Engine API démarrée (%s)", settings.APP_ENV)
    yield


app = FastAPI(
    title="Unilien Engine API",
    description="Conformité IDCC 3239 et paie des interventions à domicile",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    """Saisie que le moteur refuse et qu'aucun router n'a traduite."""
    logger.warning("%s %s : %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc)},
    )


for router in ROUTERS:
    app.include_router(router, prefix=API_PREFIX)


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "Unilien Engine API", "version": app.version}
