"""Root pytest configuration."""

import os
from pathlib import Path

import pytest
import pytest_asyncio
from dotenv import load_dotenv

_root = Path(__file__).parent
load_dotenv(_root / ".env")
load_dotenv(_root / ".env.local", override=True)

# Tests never talk to SendGrid or Sentry
os.environ.pop("SENDGRID_API_KEY", None)
os.environ.pop("SENTRY_DSN", None)

TEST_SALT = "test-salt-0123456789abcdef"


@pytest.fixture(scope="session")
def event_loop_policy():
    """Use default event loop policy for all async tests."""
    import asyncio

    return asyncio.DefaultEventLoopPolicy()


@pytest.fixture
def dedupe_salt():
    return TEST_SALT


@pytest_asyncio.fixture
async def sqlite_engine(tmp_path):
    """
    File-backed SQLite engine with the contest schema created.

    A file (not :memory:) so concurrent connections see the same database.
    """
    from sqlalchemy.ext.asyncio import create_async_engine

    from contest.tables import metadata

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'contest.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield engine
    await engine.dispose()
