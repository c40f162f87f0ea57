"""Rent Reminders - reminder scheduling API for rental leases."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: Create tables and seed default triggers
    from app.database import get_db_context, init_db
    from app.services.trigger_config_loader import load_default_triggers

    init_db()

    with get_db_context() as db:
        load_default_triggers(db)

    yield


app = FastAPI(
    title=settings.app_name,
    description="Schedule rent-due and lease reminders for active leases",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}


# Import and include routers
from app.api import cron, reminders, triggers  # noqa: E402

app.include_router(cron.router, prefix="/api")
app.include_router(reminders.router, prefix="/api")
app.include_router(triggers.router, prefix="/api")
