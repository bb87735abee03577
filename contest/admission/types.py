"""Records passed between admission stages."""

from dataclasses import dataclass, field
from datetime import datetime

from contest.enums import IdentityKind


@dataclass(frozen=True)
class Submission:
    """A validated, normalized submission. Nothing has been written yet."""

    contest_id: str
    draw_at: datetime
    email: str
    phone: str
    locale: str
    consent: bool
    reminder_at: datetime | None = None
    profile: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Entry:
    """One accepted registration. Never mutated after admission."""

    contest_id: str
    entry_id: str
    created_at: datetime
    locale: str
    email: str
    phone: str
    consent: bool
    draw_at: datetime
    reminder_at: datetime
    profile: dict = field(default_factory=dict)

    @property
    def first_name(self) -> str | None:
        return self.profile.get("firstName") or None


@dataclass(frozen=True)
class DedupeMarker:
    """A claim that an identity has been used for a contest."""

    contest_id: str
    kind: IdentityKind
    identity_hash: str
    entry_id: str
    created_at: datetime
