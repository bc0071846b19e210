# maintdesk/main.py
"""
Maintdesk - maintenance ticket API

Ticket tracking across commands and units:
- JWT authentication with viewer / technician / admin roles
- Scope-filtered ticket lists, details and dashboard counts
- Concurrency-safe ticket numbering
- Spreadsheet import and export
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from maintdesk.core.config import settings
from maintdesk.core.database import check_connection, init_db
from maintdesk.core.logger import get_logger
from maintdesk.middleware.error_handler import register_error_handlers
from maintdesk.middleware.logging import add_request_id_middleware
from maintdesk.routes import include_routes
from maintdesk.utils.datetime_utils import get_utc_now, to_iso_string

logger = get_logger(__name__)

app = FastAPI(
    title=settings.api_title,
    description="Maintenance ticket tracking for commands and units",
    version=settings.api_version,
    debug=settings.debug,
)

# ==================== MIDDLEWARE SETUP ====================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.middleware("http")(add_request_id_middleware)

# ==================== ERROR HANDLERS ====================

register_error_handlers(app)

# ==================== ROUTE REGISTRATION ====================

include_routes(app)

# ==================== STARTUP/SHUTDOWN ====================

@app.on_event("startup")
async def startup_event():
    """Check the database and create tables on startup"""
    logger.info("Starting up Maintdesk...")

    if not check_connection():
        logger.error("Failed to connect to database on startup")
        raise RuntimeError("Database connection failed")

    if not init_db():
        logger.error("Failed to initialize database on startup")
        raise RuntimeError("Database initialization failed")

    logger.info("Maintdesk started successfully")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Maintdesk...")


# ==================== HEALTH CHECKS ====================

@app.get("/health")
def health_check():
    """Liveness plus a database ping."""
    database_ok = check_connection()
    return {
        "status": "healthy" if database_ok else "degraded",
        "service": settings.api_title,
        "version": settings.api_version,
        "database": "connected" if database_ok else "unavailable",
        "timestamp": to_iso_string(get_utc_now()),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("maintdesk.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
