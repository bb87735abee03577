"""
Entry service: the admission pipeline and the objects it is built from.

    validate -> commit -> confirm -> schedule

Each stage either hands a value to the next or raises a ContestError.
Failures after commit never undo the entry: a failed confirmation is
reported and swallowed, a failed schedule is raised as SchedulingFailed so
the caller repairs scheduling alone.
"""

import logging
from dataclasses import dataclass, field

import sentry_sdk
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.ext.asyncio import AsyncEngine

from contest.admission.controller import AdmissionController
from contest.admission.ledger import DedupeLedger
from contest.admission.store import EntryStore
from contest.admission.types import Entry
from contest.admission.validation import Validator, load_contest_rules
from contest.config import Settings
from contest.enums import NotificationTemplate
from contest.errors import EntryNotFound, SchedulingFailed
from contest.instrumentation import stage
from contest.notifications.channels.email import EmailSender
from contest.notifications.confirmation import ConfirmationNotifier
from contest.notifications.dispatcher import NotificationDispatcher
from contest.notifications.scheduler import DeferredScheduler

logger = logging.getLogger(__name__)


@dataclass
class AdmissionResult:
    entry: Entry
    confirmation_sent: bool
    schedules: dict[str, str] = field(default_factory=dict)


class EntryService:
    def __init__(
        self,
        validator: Validator,
        controller: AdmissionController,
        notifier: ConfirmationNotifier,
        scheduler: DeferredScheduler,
        store: EntryStore,
    ):
        self.validator = validator
        self.controller = controller
        self.notifier = notifier
        self.scheduler = scheduler
        self.store = store

    async def submit(self, raw: dict) -> AdmissionResult:
        """
        Run one submission through the whole pipeline.

        Raises:
            InvalidInput: Nothing written
            DuplicateEntry: Nothing written
            AdmissionFailed: Nothing written; safe to retry the submission
            SchedulingFailed: Entry written; repair scheduling, do not resubmit
        """
        with stage("validate"):
            submission = self.validator.validate(raw)

        fire_times = self.scheduler.fire_times(submission.draw_at, submission.reminder_at)

        with stage("commit", contest_id=submission.contest_id):
            entry = await self.controller.commit(
                submission, reminder_at=fire_times[NotificationTemplate.reminder]
            )

        confirmation_sent = await self._confirm(entry)

        try:
            with stage("schedule", entry_id=entry.entry_id):
                schedules = await self.scheduler.register_entry(entry)
        except SchedulingFailed as e:
            logger.error(
                f"Entry {entry.entry_id} admitted but not fully scheduled "
                f"(missing: {', '.join(e.failed_kinds)})"
            )
            sentry_sdk.capture_exception(e)
            raise

        return AdmissionResult(
            entry=entry, confirmation_sent=confirmation_sent, schedules=schedules
        )

    async def _confirm(self, entry: Entry) -> bool:
        try:
            with stage("confirm", entry_id=entry.entry_id):
                await self.notifier.send(entry)
        except Exception as e:
            # The entry stands; report and move on to scheduling
            logger.warning(f"Confirmation not sent for entry {entry.entry_id}: {e}")
            sentry_sdk.capture_exception(e)
            return False
        return True

    async def repair_schedules(self, contest_id: str, entry_id: str) -> dict[str, str]:
        """
        Re-register both deferred jobs for an existing entry.

        Scheduling only: the entry is read, never re-admitted. Jobs that
        already exist are replaced in place.

        Raises:
            EntryNotFound: No such entry
            SchedulingFailed: Registration failed again
        """
        entry = await self.store.get_entry(contest_id, entry_id)
        if entry is None:
            raise EntryNotFound(contest_id, entry_id)

        with stage("repair", entry_id=entry_id):
            return await self.scheduler.register_entry(entry)


def build_entry_service(
    settings: Settings,
    engine: AsyncEngine,
    scheduler: AsyncIOScheduler,
    sender: EmailSender | None = None,
) -> tuple[EntryService, NotificationDispatcher]:
    """
    Wire the pipeline from process-scoped clients.

    Call once at startup; the returned objects are shared by every request.
    """
    if sender is None:
        sender = EmailSender(
            api_key=settings.sendgrid_api_key,
            from_email=settings.from_email,
            from_name=settings.from_name,
        )
    store = EntryStore(engine, timeout_seconds=settings.store_timeout_seconds)
    ledger = DedupeLedger(settings.dedupe_salt)

    service = EntryService(
        validator=Validator(load_contest_rules(settings.contest_rules_path)),
        controller=AdmissionController(store, ledger),
        notifier=ConfirmationNotifier(
            sender,
            landing_page_url=settings.landing_page_url,
            timeout_seconds=settings.email_timeout_seconds,
            store=store,
        ),
        scheduler=DeferredScheduler(
            scheduler,
            settings.reminder_offset,
            timeout_seconds=settings.scheduler_timeout_seconds,
        ),
        store=store,
    )
    dispatcher = NotificationDispatcher(
        sender,
        store=store,
        landing_page_url=settings.landing_page_url,
        timeout_seconds=settings.email_timeout_seconds,
    )
    return service, dispatcher
