# web_api/tests/conftest.py
"""Pytest fixtures for web API tests.

Builds an app with the real routes and error handlers around a real
EntryService (SQLite store, paused in-memory scheduler, mocked email), so
requests exercise the whole pipeline without PostgreSQL or SendGrid.
"""

from datetime import timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI

from contest.admission.controller import AdmissionController
from contest.admission.ledger import DedupeLedger
from contest.admission.store import EntryStore
from contest.admission.validation import Validator
from contest.config import Settings
from contest.notifications.scheduler import JOB_DEFAULTS, DeferredScheduler
from contest.service import EntryService
from web_api.error_handlers import register_error_handlers
from web_api.routes.entries import router as entries_router

ADMIN_TOKEN = "admin-token-for-tests"


@pytest_asyncio.fixture
async def scheduler():
    scheduler = AsyncIOScheduler(job_defaults=JOB_DEFAULTS, timezone=timezone.utc)
    scheduler.start(paused=True)
    yield scheduler
    scheduler.shutdown(wait=False)


@pytest.fixture
def notifier():
    notifier = MagicMock()
    notifier.send = AsyncMock()
    return notifier


@pytest.fixture
def entry_service(sqlite_engine, scheduler, notifier, dedupe_salt):
    store = EntryStore(sqlite_engine)
    return EntryService(
        validator=Validator(),
        controller=AdmissionController(store, DedupeLedger(dedupe_salt)),
        notifier=notifier,
        scheduler=DeferredScheduler(scheduler, timedelta(days=3)),
        store=store,
    )


@pytest.fixture
def app(entry_service, sqlite_engine, dedupe_salt):
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(entries_router)
    app.state.entry_service = entry_service
    app.state.settings = Settings(
        database_url=str(sqlite_engine.url),
        dedupe_salt=dedupe_salt,
        admin_api_token=ADMIN_TOKEN,
    )
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
