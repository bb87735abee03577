"""
APScheduler-based scheduler for deferred contest notifications.

Jobs are persisted to PostgreSQL so they survive restarts.

Each accepted entry gets exactly two one-shot jobs, a reminder and a draw-day
message. A job's id is a pure function of (entry_id, kind), so registering
the same entry twice replaces the existing job instead of adding a second
one. The job payload carries everything the dispatcher needs; it never
re-reads the entry.
"""

import asyncio
import hashlib
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from sqlalchemy.exc import SQLAlchemyError

from contest.admission.types import Entry
from contest.enums import DEFERRED_TEMPLATES, NotificationTemplate
from contest.errors import SchedulingFailed, SchedulingNameTooLong
from contest.notifications.dispatcher import run_scheduled_notification

logger = logging.getLogger(__name__)

# Schedule names must fit the job store's id column and stay URL/log safe
SCHEDULE_NAME_MAX_LENGTH = 64
SCHEDULE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
SCHEDULE_NAME_HASH_LENGTH = 32

# Bounds every job-store statement once connected (connect_timeout bounds the connect)
JOB_STORE_STATEMENT_TIMEOUT_MS = 5000

JOB_DEFAULTS = {
    "coalesce": True,  # Combine missed runs into one
    "max_instances": 1,
    "misfire_grace_time": None,  # Fire however late: at-or-after, never dropped
}


# =============================================================================
# Naming and time formatting
# =============================================================================


def schedule_name(entry_id: str, kind: NotificationTemplate | str) -> str:
    """
    Deterministic schedule name for one entry and notification kind.

    "<kind>-" + first 32 hex chars of sha256(entry_id + kind).

    Raises:
        SchedulingNameTooLong: If the name would exceed the limit (never truncated)
    """
    kind = NotificationTemplate(kind).value
    digest = hashlib.sha256(f"{entry_id}{kind}".encode("utf-8")).hexdigest()
    name = f"{kind}-{digest[:SCHEDULE_NAME_HASH_LENGTH]}"

    if len(name) > SCHEDULE_NAME_MAX_LENGTH:
        raise SchedulingNameTooLong(name, SCHEDULE_NAME_MAX_LENGTH)
    if not SCHEDULE_NAME_PATTERN.match(name):
        raise ValueError(f"Schedule name has characters outside [A-Za-z0-9_-]: {name!r}")
    return name


def format_fire_time(when: datetime) -> str:
    """
    Format a fire time the way the job trigger expects it.

    UTC, no sub-second component, no zone suffix: 2026-03-17T20:00:00
    """
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc).replace(microsecond=0, tzinfo=None).isoformat()


# =============================================================================
# Scheduler initialization and shutdown
# =============================================================================


def _job_store_url(database_url: str | None) -> str | None:
    """Sync PostgreSQL URL for the job store, or None to keep jobs in memory."""
    if not database_url:
        return None
    # APScheduler needs sync URL (not asyncpg)
    if database_url.startswith("postgresql+asyncpg://"):
        database_url = database_url.replace("postgresql+asyncpg://", "postgresql://")
    if not database_url.startswith("postgresql://"):
        return None

    # Add connection timeout to prevent hanging when DB is unavailable
    if "?" not in database_url:
        database_url += "?connect_timeout=5"
    elif "connect_timeout" not in database_url:
        database_url += "&connect_timeout=5"

    return database_url


def init_scheduler(
    database_url: str | None, skip_if_db_unavailable: bool = True
) -> AsyncIOScheduler:
    """
    Create and start the APScheduler.

    Call this during app startup (in FastAPI lifespan), once per process.

    Args:
        database_url: Application database URL; jobs persist there when it is PostgreSQL
        skip_if_db_unavailable: If True, fall back to an in-memory job store when
                                the database is unreachable instead of failing startup
    """
    jobstores = {}
    job_store_url = _job_store_url(database_url)
    if job_store_url:
        jobstores["default"] = SQLAlchemyJobStore(
            url=job_store_url,
            tablename="apscheduler_jobs",
            engine_options={
                "connect_args": {
                    "options": f"-c statement_timeout={JOB_STORE_STATEMENT_TIMEOUT_MS}"
                }
            },
        )

    scheduler = AsyncIOScheduler(
        jobstores=jobstores, job_defaults=JOB_DEFAULTS, timezone=timezone.utc
    )

    try:
        scheduler.start()
        logger.info("Notification scheduler started")
    except SQLAlchemyError as e:
        if not skip_if_db_unavailable:
            raise
        # Database unavailable - fall back to in-memory scheduler
        logger.warning(
            f"Could not connect to database for scheduler ({e}); "
            "running in memory-only mode, jobs won't persist"
        )
        scheduler = AsyncIOScheduler(
            jobstores={}, job_defaults=JOB_DEFAULTS, timezone=timezone.utc
        )
        scheduler.start()
        logger.info("Notification scheduler started (memory-only)")

    return scheduler


def shutdown_scheduler(scheduler: AsyncIOScheduler | None) -> None:
    """
    Shutdown the scheduler gracefully.

    Call this during app shutdown.
    """
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Notification scheduler stopped")


# =============================================================================
# Deferred notifications
# =============================================================================


@dataclass(frozen=True)
class ScheduledNotification:
    name: str
    template: NotificationTemplate
    fire_at: datetime
    contest_id: str
    entry_id: str
    email: str
    locale: str
    first_name: str | None = None

    def to_payload(self) -> dict:
        """Job payload handed to the dispatcher at fire time."""
        payload = {
            "contestId": self.contest_id,
            "entryId": self.entry_id,
            "email": self.email,
            "locale": self.locale,
            "template": self.template.value,
        }
        if self.first_name:
            payload["firstName"] = self.first_name
        return payload


class DeferredScheduler:
    """Registers the reminder and draw-day jobs for admitted entries."""

    def __init__(
        self,
        scheduler: AsyncIOScheduler,
        reminder_offset: timedelta,
        timeout_seconds: float = 10.0,
    ):
        if reminder_offset <= timedelta(0):
            raise ValueError("reminder_offset must be positive")
        self._scheduler = scheduler
        self.reminder_offset = reminder_offset
        self.timeout_seconds = timeout_seconds

    def fire_times(
        self, draw_at: datetime, reminder_at: datetime | None = None
    ) -> dict[NotificationTemplate, datetime]:
        """
        Fire times for both deferred kinds.

        Draw day fires at the event timestamp verbatim; the reminder fires at
        the explicit reminder timestamp or reminder_offset before the event.
        """
        return {
            NotificationTemplate.reminder: reminder_at or draw_at - self.reminder_offset,
            NotificationTemplate.draw: draw_at,
        }

    def notification_for(
        self, entry: Entry, kind: NotificationTemplate
    ) -> ScheduledNotification:
        """Describe one deferred job from the entry's stored timestamps."""
        kind = NotificationTemplate(kind)
        if kind not in DEFERRED_TEMPLATES:
            raise ValueError(f"Not a deferred notification kind: {kind.value}")
        fire_at = (
            entry.reminder_at if kind == NotificationTemplate.reminder else entry.draw_at
        )
        return ScheduledNotification(
            name=schedule_name(entry.entry_id, kind),
            template=kind,
            fire_at=fire_at,
            contest_id=entry.contest_id,
            entry_id=entry.entry_id,
            email=entry.email,
            locale=entry.locale,
            first_name=entry.first_name,
        )

    def schedule(self, notification: ScheduledNotification) -> str:
        """
        Register one one-shot job.

        Re-registering an existing name replaces that job in place.

        Returns:
            The schedule name
        """
        run_date = format_fire_time(notification.fire_at)
        if self._scheduler.get_job(notification.name):
            logger.info(f"Schedule {notification.name} exists, replacing")

        self._scheduler.add_job(
            run_scheduled_notification,
            trigger="date",
            run_date=run_date,
            timezone=timezone.utc,
            id=notification.name,
            name=notification.name,
            replace_existing=True,
            kwargs={"payload": notification.to_payload()},
        )
        logger.info(
            f"Scheduled {notification.template.value} for entry "
            f"{notification.entry_id} at {run_date} as {notification.name}"
        )
        return notification.name

    def schedule_entry(self, entry: Entry) -> dict[str, str]:
        """
        Register both deferred jobs for an entry.

        Both registrations are attempted even if the first fails.

        Returns:
            {kind: schedule name}

        Raises:
            SchedulingFailed: If either registration failed (the entry stands)
        """
        names = {}
        failed = []
        for kind in DEFERRED_TEMPLATES:
            try:
                names[kind.value] = self.schedule(self.notification_for(entry, kind))
            except Exception as e:
                logger.error(
                    f"Failed to schedule {kind.value} for entry {entry.entry_id}: {e}"
                )
                failed.append(kind.value)

        if failed:
            raise SchedulingFailed(entry.entry_id, failed)
        return names

    def pending(self, entry_id: str) -> dict[str, bool]:
        """Which of the entry's two jobs are currently registered."""
        return {
            kind.value: self._scheduler.get_job(schedule_name(entry_id, kind)) is not None
            for kind in DEFERRED_TEMPLATES
        }

    async def register_entry(self, entry: Entry) -> dict[str, str]:
        """
        schedule_entry() from a worker thread, bounded by timeout_seconds.

        The job store is synchronous (psycopg2) and never runs on the event loop.

        Raises:
            SchedulingFailed: If either registration failed or the wait timed out.
                              A timed-out registration may still land later;
                              repair replaces it in place.
        """
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.schedule_entry, entry),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error(
                f"Scheduling entry {entry.entry_id} timed out after {self.timeout_seconds}s"
            )
            raise SchedulingFailed(
                entry.entry_id, [kind.value for kind in DEFERRED_TEMPLATES]
            ) from e

    async def pending_status(self, entry_id: str) -> dict[str, bool]:
        """pending() from a worker thread, bounded by timeout_seconds."""
        return await asyncio.wait_for(
            asyncio.to_thread(self.pending, entry_id), timeout=self.timeout_seconds
        )
