"""
Dedupe ledger: append-only "identity already used" markers.

A marker's key is (contest_id, kind, identity_hash). Writing one is the
conditional write of admission: the primary key rejects a second claim, and
because markers are inserted in the same transaction as their entry, a
rejected claim rolls the whole admission back.
"""

from datetime import datetime

from sqlalchemy import and_, insert, select
from sqlalchemy.ext.asyncio import AsyncConnection

from contest.admission.identity import identity_hash
from contest.admission.types import DedupeMarker
from contest.enums import IdentityKind
from contest.tables import dedupe_markers


class DedupeLedger:
    """Builds and reads dedupe markers. Writes go through EntryStore."""

    def __init__(self, salt: str):
        self._salt = salt

    def hash(self, value: str) -> str:
        return identity_hash(value, self._salt)

    def build_markers(
        self,
        contest_id: str,
        entry_id: str,
        email: str,
        phone: str,
        created_at: datetime,
    ) -> list[DedupeMarker]:
        """Build the email and phone markers for one entry."""
        return [
            DedupeMarker(
                contest_id=contest_id,
                kind=kind,
                identity_hash=self.hash(value),
                entry_id=entry_id,
                created_at=created_at,
            )
            for kind, value in (
                (IdentityKind.email, email),
                (IdentityKind.phone, phone),
            )
        ]

    async def find_owner(
        self,
        conn: AsyncConnection,
        contest_id: str,
        kind: IdentityKind,
        value: str,
    ) -> str | None:
        """Return the entry_id holding a claim on a normalized identity, if any."""
        result = await conn.execute(
            select(dedupe_markers.c.entry_id).where(
                and_(
                    dedupe_markers.c.contest_id == contest_id,
                    dedupe_markers.c.kind == kind,
                    dedupe_markers.c.identity_hash == self.hash(value),
                )
            )
        )
        row = result.first()
        return row[0] if row else None


def marker_insert(marker: DedupeMarker):
    """INSERT statement for one marker. Fails on an existing key."""
    return insert(dedupe_markers).values(
        contest_id=marker.contest_id,
        kind=marker.kind,
        identity_hash=marker.identity_hash,
        entry_id=marker.entry_id,
        created_at=marker.created_at,
    )
