import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from preppal.api.router import api_router
from preppal.core.config import log_environment, settings
from preppal.core.logging import configure_logging
from preppal.db.base import Base
from preppal.db.session import SessionLocal, engine
from preppal import models  # noqa: F401

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup():
    log_environment()
    Base.metadata.create_all(bind=engine)
    logger.info("[startup] Storage tables ready")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/health/db")
def health_db():
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ok", "database": "connected"}
    except Exception as exc:
        logger.error("[health] Database check failed: %s", exc)
        return {"status": "error", "database": str(exc)}
    finally:
        db.close()


app.include_router(api_router, prefix=settings.api_prefix)
