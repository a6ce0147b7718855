"""
FastAPI application entry point
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from court_scheduling.core.config import settings
from court_scheduling.core.logger import logger
from court_scheduling.api.v1.api import api_router
from court_scheduling.db.database import SessionLocal, init_db
from court_scheduling.middleware.correlation import CorrelationMiddleware
from court_scheduling.services.idempotency_service import delete_expired_idempotency_records

app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(api_router, prefix="/api/v1")

# ── Correlation ID middleware (must be added before CORS) ─────────────────────
app.add_middleware(CorrelationMiddleware)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
)


@app.get("/")
def read_root():
    logger.info("Root endpoint accessed")
    return {"message": "Court Scheduler API is running", "version": "1.0.0", "docs": "/docs"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.on_event("startup")
def on_startup() -> None:
    init_db()

    db = SessionLocal()
    try:
        deleted = delete_expired_idempotency_records(db)
        logger.info("Startup sweep removed %d expired idempotency records", deleted)
    except Exception as e:
        logger.warning("Idempotency sweep failed (non-blocking): %s", e)
    finally:
        db.close()

    logger.info(
        "%s started (conflict mode=%s, courtroom-scoped=%s)",
        settings.APP_NAME, settings.CONFLICT_CHECK_MODE, settings.CONFLICT_SCOPE_INCLUDES_COURTROOM,
    )
