import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from planner import models  # noqa: F401  registers tables on Base.metadata
from planner.core.config import CORS_ORIGINS, CREATE_TABLES, LOG_LEVEL
from planner.core.logging_setup import setup_logging
from planner.database.db import Base, engine
from planner.routes import admin, apartments, auth, events, guests

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(LOG_LEVEL)
    # The hosted database owns the schema
    if CREATE_TABLES:
        Base.metadata.create_all(bind=engine)
    logger.info("Guest planner ready")
    yield


app = FastAPI(title="Guest Planner", lifespan=lifespan)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Raw floor plans are public, like the rest of the static assets
app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

# Include the routers
app.include_router(auth.router)
app.include_router(events.router)
app.include_router(guests.router)
app.include_router(apartments.router)
app.include_router(admin.router)
