"""
Error taxonomy for admission and scheduling.

Each error knows its HTTP status and the JSON body the caller sees. Only
InvalidInput and DuplicateEntry carry a specific message; everything else
collapses to "server_error" with a taxonomy code so no infrastructure detail
leaks to the entrant.
"""

from typing import Iterable


class ContestError(Exception):
    """Base exception for all contest entry errors."""

    code = "server_error"
    http_status = 500

    def __init__(self, message: str = ""):
        self.message = message or self.code
        super().__init__(self.message)

    def to_response(self) -> dict:
        return {"error": "server_error", "details": self.code}


class ConfigurationError(ContestError):
    """Raised at startup when settings are missing or invalid."""

    code = "configuration_error"


class InvalidInput(ContestError):
    """Submission failed validation. No side effects have happened."""

    code = "invalid_input"
    http_status = 400

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)

    def to_response(self) -> dict:
        return {"error": self.reason}


class DuplicateEntry(ContestError):
    """The email or phone was already admitted for this contest. Not retryable."""

    code = "duplicate_entry"
    http_status = 409

    def __init__(self, contest_id: str):
        self.contest_id = contest_id
        super().__init__(f"Duplicate entry for contest {contest_id}")

    def to_response(self) -> dict:
        return {"error": "duplicate_entry"}


class AdmissionFailed(ContestError):
    """The store could not be reached or timed out. Entry not created; safe to retry."""

    code = "admission_failed"


class SchedulingFailed(ContestError):
    """
    The entry exists but one or both deferred jobs are missing.

    Retry with a scheduling-only repair, never by re-submitting the entry
    (that would report DuplicateEntry).
    """

    code = "scheduling_failed"

    def __init__(self, entry_id: str, failed_kinds: Iterable[str]):
        self.entry_id = entry_id
        self.failed_kinds = sorted(failed_kinds)
        super().__init__(
            f"Scheduling failed for entry {entry_id}: {', '.join(self.failed_kinds)}"
        )

    def to_response(self) -> dict:
        # entryId feeds the schedule repair endpoint
        return {"error": "server_error", "details": self.code, "entryId": self.entry_id}


class SchedulingNameTooLong(ContestError):
    """A computed schedule name exceeds the scheduler's name limit."""

    code = "scheduling_name_too_long"

    def __init__(self, name: str, limit: int):
        self.name = name
        self.limit = limit
        super().__init__(
            f"Schedule name exceeds {limit} character limit: {len(name)} chars: {name!r}"
        )


class NotificationSendFailed(ContestError):
    """An email could not be delivered. Never invalidates the entry."""

    code = "notification_send_failed"

    def __init__(self, entry_id: str, template: str):
        self.entry_id = entry_id
        self.template = template
        super().__init__(f"Failed to send {template} email for entry {entry_id}")


class EntryNotFound(ContestError):
    code = "entry_not_found"
    http_status = 404

    def __init__(self, contest_id: str, entry_id: str):
        self.contest_id = contest_id
        self.entry_id = entry_id
        super().__init__(f"Entry {entry_id} not found in contest {contest_id}")

    def to_response(self) -> dict:
        return {"error": "entry_not_found"}
