"""
Durable record of accepted entries.

commit_admission() writes one entry and its dedupe markers in a single
transaction; either all rows exist afterwards or none do. The notification
log lives here too, since it shares the engine.
"""

import asyncio
import logging
from datetime import datetime, timezone

from sqlalchemy import and_, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from contest.admission.ledger import DedupeLedger, marker_insert
from contest.admission.types import DedupeMarker, Entry
from contest.enums import DeliveryStatus, IdentityKind, NotificationTemplate
from contest.errors import AdmissionFailed, DuplicateEntry
from contest.tables import entries, notification_log

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; PostgreSQL hands back aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _row_to_entry(row) -> Entry:
    return Entry(
        contest_id=row["contest_id"],
        entry_id=row["entry_id"],
        created_at=_as_utc(row["created_at"]),
        locale=row["locale"],
        email=row["email"],
        phone=row["phone"],
        consent=bool(row["consent"]),
        draw_at=_as_utc(row["draw_at"]),
        reminder_at=_as_utc(row["reminder_at"]),
        profile=dict(row["profile"] or {}),
    )


class EntryStore:
    def __init__(self, engine: AsyncEngine, timeout_seconds: float = 10.0):
        self._engine = engine
        self._timeout = timeout_seconds

    async def commit_admission(self, entry: Entry, markers: list[DedupeMarker]) -> None:
        """
        Insert the entry and its markers atomically.

        Raises:
            DuplicateEntry: A marker key already exists; nothing was written
            AdmissionFailed: Store unavailable or timed out; nothing was written
        """
        try:
            await asyncio.wait_for(
                self._insert_all(entry, markers), timeout=self._timeout
            )
        except IntegrityError as e:
            raise DuplicateEntry(entry.contest_id) from e
        except asyncio.TimeoutError as e:
            raise AdmissionFailed(
                f"Store timed out after {self._timeout}s admitting {entry.entry_id}"
            ) from e
        except (SQLAlchemyError, OSError) as e:
            raise AdmissionFailed(f"Store error admitting {entry.entry_id}: {e}") from e

    async def _insert_all(self, entry: Entry, markers: list[DedupeMarker]) -> None:
        async with self._engine.begin() as conn:
            await conn.execute(
                insert(entries).values(
                    contest_id=entry.contest_id,
                    entry_id=entry.entry_id,
                    locale=entry.locale,
                    email=entry.email,
                    phone=entry.phone,
                    profile=entry.profile,
                    consent=entry.consent,
                    draw_at=entry.draw_at,
                    reminder_at=entry.reminder_at,
                    created_at=entry.created_at,
                )
            )
            for marker in markers:
                await conn.execute(marker_insert(marker))

    async def get_entry(self, contest_id: str, entry_id: str) -> Entry | None:
        async with self._engine.connect() as conn:
            result = await conn.execute(
                select(entries).where(
                    and_(
                        entries.c.contest_id == contest_id,
                        entries.c.entry_id == entry_id,
                    )
                )
            )
            row = result.mappings().first()
        return _row_to_entry(row) if row else None

    async def find_marker_owner(
        self,
        ledger: DedupeLedger,
        contest_id: str,
        kind: IdentityKind,
        value: str,
    ) -> str | None:
        """Which entry (if any) holds the claim on a normalized identity."""
        async with self._engine.connect() as conn:
            return await ledger.find_owner(conn, contest_id, kind, value)

    # -------------------------------------------------------------------------
    # Notification log
    # -------------------------------------------------------------------------

    async def log_notification(
        self,
        contest_id: str,
        entry_id: str,
        template: NotificationTemplate,
        success: bool,
        error_message: str | None = None,
    ) -> None:
        """Record a delivery attempt. Logging failures never break sending."""
        try:
            async with self._engine.begin() as conn:
                await conn.execute(
                    insert(notification_log).values(
                        contest_id=contest_id,
                        entry_id=entry_id,
                        template=template,
                        channel="email",
                        status=DeliveryStatus.sent if success else DeliveryStatus.failed,
                        error_message=error_message,
                    )
                )
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Failed to log {template.value} notification for {entry_id}: {e}")

    async def was_notification_sent(
        self, entry_id: str, template: NotificationTemplate
    ) -> bool:
        """Check if a notification was already successfully sent."""
        async with self._engine.connect() as conn:
            result = await conn.execute(
                select(notification_log.c.log_id)
                .where(
                    and_(
                        notification_log.c.entry_id == entry_id,
                        notification_log.c.template == template,
                        notification_log.c.status == DeliveryStatus.sent,
                    )
                )
                .limit(1)
            )
            return result.first() is not None
