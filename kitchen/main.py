import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kitchen.core.config import CORS_ORIGINS, DATABASE_URL
from kitchen.core.database import Database
from kitchen.core.errors import install_exception_handlers
from kitchen.core.logging_setup import configure_logging
from kitchen.core.startup_checks import ensure_migrations_applied, validate_database_environment
from kitchen.middleware.observability import ObservabilityMiddleware
from kitchen.routers.customers import router as customers_router
from kitchen.routers.dashboard import router as dashboard_router
from kitchen.routers.dishes import router as dishes_router
from kitchen.routers.ingredients import router as ingredients_router
from kitchen.routers.internal_metrics import router as internal_metrics_router
from kitchen.routers.kitchen import router as kitchen_router
from kitchen.routers.orders import router as orders_router
from kitchen.routers.reports import router as reports_router

configure_logging()

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini")))


def _startup_tasks(database: Database) -> None:
    try:
        validate_database_environment(database.url)
        if database.is_sqlite:
            database.create_all()
        else:
            ensure_migrations_applied(engine=database.engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
    except Exception:
        logger.exception("%s ERROR startup failed", STARTUP_PREFIX)
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    database = getattr(app.state, "database", None)
    if database is None:
        database = Database(DATABASE_URL)
        app.state.database = database
    _startup_tasks(database)
    logger.info("%s ready dialect=%s", STARTUP_PREFIX, database.engine.dialect.name)
    try:
        yield
    finally:
        database.dispose()


def create_app(database: Optional[Database] = None) -> FastAPI:
    app = FastAPI(
        title="Home Kitchen Orders API",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    if database is not None:
        app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(ObservabilityMiddleware)
    install_exception_handlers(app)

    # Routers
    app.include_router(customers_router)
    app.include_router(dishes_router)
    app.include_router(ingredients_router)
    app.include_router(orders_router)
    app.include_router(kitchen_router)
    app.include_router(reports_router)
    app.include_router(dashboard_router)
    app.include_router(internal_metrics_router)

    @app.get("/")
    def root():
        return {"status": "ok"}

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    return app


app = create_app()
