"""CodeClip FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

# Configure logging so our INFO messages appear in container logs
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
from fastapi.middleware.cors import CORSMiddleware

from codeclip.config import APP_VERSION, settings
from codeclip.routers import clipboard, health
from codeclip.services.clipboard_service import close_store, init_store
from codeclip.services.sweeper import ExpirySweeper

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    # Startup
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    store = await init_store()

    sweeper = ExpirySweeper(store, settings.sweep_interval_seconds)
    await sweeper.start()
    app.state.sweeper = sweeper

    yield
    # Shutdown
    await sweeper.stop()
    await close_store()


app = FastAPI(
    title="CodeClip",
    description="Short-lived clipboards shared by typeable codes",
    version=APP_VERSION,
    lifespan=lifespan,
)

# CORS: localhost defaults plus any extra origins from CODECLIP_CORS_ORIGINS
_cors_origins = ["http://localhost:5173", "http://localhost:8080"]
if settings.cors_origins:
    _cors_origins.extend(o.strip() for o in settings.cors_origins.split(",") if o.strip())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routers
app.include_router(clipboard.router)
app.include_router(health.router)
