import logging
from typing import Any, Dict

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from . import telemetry_pipeline  # noqa: F401
from .admin_routes import router as admin_router
from .assessment_routes import router as assessment_router
from .config import Settings, get_settings
from .db.monitoring import get_pool_snapshot
from .db.session import get_engine
from .logging_config import configure_logging
from .theme_routes import router as theme_router


configure_logging()
logger = logging.getLogger(__name__)
app = FastAPI(title="Lux Libris Assessments", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(assessment_router)
app.include_router(theme_router)
app.include_router(admin_router)

settings_snapshot = get_settings()
logger.info("Backend starting for academic year %s", settings_snapshot.academic_year)
logger.info("Database configured: %s", bool(settings_snapshot.database_url))
logger.info("Admin token configured: %s", bool(settings_snapshot.admin_token))


@app.get("/healthz")
def health(settings: Settings = Depends(get_settings)) -> Dict[str, str]:
    return {"status": "ok", "academic_year": settings.academic_year}


@app.get("/healthz/database")
def database_health() -> Dict[str, Any]:
    try:
        engine = get_engine()
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        logger.exception("Database health check failed")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return {"status": "ok", "dialect": engine.dialect.name, "pool": get_pool_snapshot(engine)}
