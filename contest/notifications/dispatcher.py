"""
Notification dispatcher - sends deferred contest emails when their job fires.

APScheduler persists jobs as a reference to run_scheduled_notification plus
its payload, so the dispatcher instance cannot travel with the job. The
process registers its dispatcher once at startup (register_dispatcher) and
the job function looks it up.

Delivery is at-least-once: a redelivered job whose earlier send is already in
the notification log is skipped, but a crash between sending and logging can
still produce a second copy. That is accepted.
"""

import logging

import sentry_sdk
from sqlalchemy.exc import SQLAlchemyError

from contest.admission.store import EntryStore
from contest.enums import DEFAULT_LOCALE, DEFERRED_TEMPLATES, NotificationTemplate
from contest.errors import NotificationSendFailed
from contest.notifications.channels.email import EmailMessage, EmailSender
from contest.notifications.templates import build_context, get_message

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def __init__(
        self,
        sender: EmailSender,
        store: EntryStore | None,
        landing_page_url: str,
        timeout_seconds: float = 10.0,
    ):
        self._sender = sender
        self._store = store
        self._landing_page_url = landing_page_url
        self._timeout = timeout_seconds

    async def dispatch(self, payload: dict) -> bool:
        """
        Render and send one deferred notification.

        Args:
            payload: {contestId, entryId, email, firstName?, locale, template}

        Returns:
            True if sent (or already sent before), False if the payload is unusable

        Raises:
            NotificationSendFailed: If the email could not be delivered
        """
        try:
            template = NotificationTemplate(payload.get("template"))
        except ValueError:
            logger.error(f"Unknown notification template in payload: {payload!r}")
            return False
        if template not in DEFERRED_TEMPLATES:
            logger.error(f"Template {template.value} is not a deferred notification")
            return False

        entry_id = payload.get("entryId")
        contest_id = payload.get("contestId")
        email = payload.get("email")
        if not entry_id or not contest_id or not email:
            logger.error(f"Incomplete {template.value} payload: {payload!r}")
            return False

        if await self._already_sent(entry_id, template):
            logger.info(f"{template.value} for entry {entry_id} already sent, skipping")
            return True

        locale = payload.get("locale") or DEFAULT_LOCALE
        context = build_context(locale, payload.get("firstName"), self._landing_page_url)
        message = EmailMessage(
            to_email=email,
            subject=get_message(template.value, locale, "email_subject", context),
            body=get_message(template.value, locale, "email_body", context),
        )

        sent = await self._sender.deliver(message, self._timeout)
        if self._store:
            await self._store.log_notification(
                contest_id,
                entry_id,
                template,
                success=sent,
                error_message=None if sent else "send failed",
            )

        if not sent:
            raise NotificationSendFailed(entry_id, template.value)

        logger.info(f"Sent {template.value} email for entry {entry_id}")
        return True

    async def _already_sent(self, entry_id: str, template: NotificationTemplate) -> bool:
        if not self._store:
            return False
        try:
            return await self._store.was_notification_sent(entry_id, template)
        except (SQLAlchemyError, OSError) as e:
            # Unknown counts as not sent
            logger.warning(f"Could not check notification log for {entry_id}: {e}")
            return False


# =============================================================================
# Job entry point
# =============================================================================

_dispatcher: NotificationDispatcher | None = None


def register_dispatcher(dispatcher: NotificationDispatcher | None) -> None:
    """Make the process's dispatcher available to scheduled jobs."""
    global _dispatcher
    _dispatcher = dispatcher


async def run_scheduled_notification(payload: dict) -> None:
    """
    Execute a deferred notification.

    This is the job function called by APScheduler.
    """
    if _dispatcher is None:
        logger.error(
            f"Dispatcher not registered, dropping {payload.get('template')} "
            f"for entry {payload.get('entryId')}"
        )
        sentry_sdk.capture_message(
            f"Scheduled notification fired with no dispatcher: {payload.get('entryId')}"
        )
        return

    try:
        await _dispatcher.dispatch(payload)
    except NotificationSendFailed as e:
        logger.error(str(e))
        sentry_sdk.capture_exception(e)
