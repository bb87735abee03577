"""
Admission: turn a validated submission into a durable, unique entry.

There is no lock service. Two workers racing on the same email or phone both
try to insert the same dedupe marker key; the database lets exactly one
transaction commit and the other rolls back with nothing written.

Retrying after AdmissionFailed is safe: a submission that never committed
commits now, and one that did commit (e.g. the response was lost) collides
with its own markers and reports DuplicateEntry.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable

from contest.admission.ledger import DedupeLedger
from contest.admission.store import EntryStore
from contest.admission.types import Entry, Submission

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AdmissionController:
    def __init__(
        self,
        store: EntryStore,
        ledger: DedupeLedger,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._store = store
        self._ledger = ledger
        self._clock = clock

    async def commit(self, submission: Submission, reminder_at: datetime) -> Entry:
        """
        Atomically create the entry and its email/phone markers.

        Args:
            submission: Validated, normalized submission
            reminder_at: Resolved reminder fire time, stored on the entry

        Returns:
            The new Entry (with a fresh UUID4 entry_id)

        Raises:
            DuplicateEntry: Email or phone already admitted for this contest
            AdmissionFailed: Store error or timeout; nothing was written
        """
        now = self._clock()
        entry = Entry(
            contest_id=submission.contest_id,
            entry_id=str(uuid.uuid4()),
            created_at=now,
            locale=submission.locale,
            email=submission.email,
            phone=submission.phone,
            consent=submission.consent,
            draw_at=submission.draw_at,
            reminder_at=reminder_at,
            profile=dict(submission.profile),
        )
        markers = self._ledger.build_markers(
            contest_id=entry.contest_id,
            entry_id=entry.entry_id,
            email=entry.email,
            phone=entry.phone,
            created_at=now,
        )

        await self._store.commit_admission(entry, markers)
        logger.info(f"Admitted entry {entry.entry_id} to contest {entry.contest_id}")
        return entry
