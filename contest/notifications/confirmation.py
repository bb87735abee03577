"""Immediate confirmation email after a successful admission."""

import logging

from contest.admission.store import EntryStore
from contest.admission.types import Entry
from contest.enums import NotificationTemplate
from contest.errors import NotificationSendFailed
from contest.notifications.channels.email import EmailMessage, EmailSender
from contest.notifications.templates import build_context, get_message

logger = logging.getLogger(__name__)


class ConfirmationNotifier:
    def __init__(
        self,
        sender: EmailSender,
        landing_page_url: str,
        timeout_seconds: float = 10.0,
        store: EntryStore | None = None,
    ):
        self._sender = sender
        self._landing_page_url = landing_page_url
        self._timeout = timeout_seconds
        self._store = store

    def build_message(self, entry: Entry) -> EmailMessage:
        template = NotificationTemplate.confirmation.value
        context = build_context(entry.locale, entry.first_name, self._landing_page_url)
        return EmailMessage(
            to_email=entry.email,
            subject=get_message(template, entry.locale, "email_subject", context),
            body=get_message(template, entry.locale, "email_body", context),
        )

    async def send(self, entry: Entry) -> None:
        """
        Send the confirmation in the entry's locale.

        Raises:
            NotificationSendFailed: If delivery failed or timed out. The entry
                                    stays admitted either way.
        """
        sent = await self._sender.deliver(self.build_message(entry), self._timeout)
        if self._store:
            await self._store.log_notification(
                entry.contest_id,
                entry.entry_id,
                NotificationTemplate.confirmation,
                success=sent,
                error_message=None if sent else "send failed",
            )
        if not sent:
            raise NotificationSendFailed(
                entry.entry_id, NotificationTemplate.confirmation.value
            )
        logger.info(f"Sent confirmation email for entry {entry.entry_id}")
