"""
Contest entry service entry point.

Architecture:
- One Python process, one asyncio event loop
- Two peer services running concurrently:
  1. FastAPI (HTTP server for the entry form)
  2. APScheduler (deferred reminder and draw-day emails)

We use FastAPI's lifespan to build the process-scoped clients (database
engine, scheduler, email sender) once, and hand them to every request
through app.state.

Run with: python main.py [--port PORT]
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

# Load .env.local first (if exists), then .env as fallback
# .env.local is gitignored and used for local dev overrides
load_dotenv(project_root / ".env.local")
load_dotenv()

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from contest.config import (
    check_required_env_vars,
    get_allowed_origins,
    load_settings,
)
from contest.database import create_engine_for
from contest.notifications import (
    init_scheduler,
    register_dispatcher,
    shutdown_scheduler,
)
from contest.service import build_entry_service
from web_api.error_handlers import register_error_handlers
from web_api.routes.entries import router as entries_router

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

SENTRY_DSN = os.environ.get("SENTRY_DSN")
if SENTRY_DSN:
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment="production" if os.environ.get("RAILWAY_ENVIRONMENT") else "development",
        traces_sample_rate=0.1,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager.

    Builds settings, engine and scheduler, wires the entry service, and
    registers the dispatcher that scheduled jobs call into.
    """
    ok, messages = check_required_env_vars()
    for message in messages:
        logger.warning(f"Config: {message}")
    if not ok:
        raise RuntimeError("Missing required environment variables")

    settings = app.state.settings = load_settings()
    engine = create_engine_for(settings.database_url, settings.store_timeout_seconds)

    logger.info("Starting scheduler...")
    scheduler = init_scheduler(settings.database_url)

    service, dispatcher = build_entry_service(settings, engine, scheduler)
    register_dispatcher(dispatcher)
    app.state.entry_service = service
    app.state.scheduler = scheduler

    yield  # FastAPI runs here, scheduler runs alongside it

    logger.info("Shutting down peer services...")
    shutdown_scheduler(scheduler)
    register_dispatcher(None)
    await engine.dispose()


app = FastAPI(
    title="Contest Entry Service",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)
app.include_router(entries_router)


@app.get("/health")
async def health():
    """Health check endpoint with scheduler status."""
    scheduler = getattr(app.state, "scheduler", None)
    return {
        "status": "healthy",
        "scheduler_running": bool(scheduler and scheduler.running),
    }


if __name__ == "__main__":
    import argparse

    import uvicorn

    parser = argparse.ArgumentParser(description="Contest Entry Service")
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to run the server on (default: 8000)",
    )
    args = parser.parse_args()

    # Pass app object directly (not string) to avoid module reimport issues
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=args.port,
    )
