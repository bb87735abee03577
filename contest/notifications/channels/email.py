"""SendGrid email delivery channel."""

import asyncio
import logging
import re
from dataclasses import dataclass

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

logger = logging.getLogger(__name__)

# Regex to match markdown links: [text](url)
MARKDOWN_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")


@dataclass
class EmailMessage:
    """Email message data."""

    to_email: str
    subject: str
    body: str


def markdown_to_html(text: str) -> str:
    """
    Convert markdown-style links to HTML and wrap in basic HTML structure.

    Converts [text](url) to <a href="url">text</a> and preserves line breaks.
    """
    html_body = MARKDOWN_LINK_PATTERN.sub(r'<a href="\2">\1</a>', text)
    html_body = html_body.replace("\n", "<br>\n")

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
</head>
<body style="margin: 0; padding: 20px; font-family: Arial, Helvetica, sans-serif; font-size: 14px; line-height: 1.6; color: #333333; background-color: #f4f4f4;">
{html_body}
</body>
</html>"""


def markdown_to_plain_text(text: str) -> str:
    """
    Convert markdown-style links to plain text with URL in parentheses.

    Converts [text](url) to text (url) for plain text email fallback.
    """
    return MARKDOWN_LINK_PATTERN.sub(r"\1 (\2)", text)


class EmailSender:
    """
    Sends email through one SendGrid client, created once per process.

    Without an API key every send fails (and says so in the log) rather than
    silently pretending to deliver.
    """

    def __init__(self, api_key: str | None, from_email: str, from_name: str):
        self.from_email = from_email
        self.from_name = from_name
        self._client = SendGridAPIClient(api_key) if api_key else None

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    def send(self, message: EmailMessage) -> bool:
        """
        Send an email via SendGrid.

        The body can contain markdown-style links [text](url) which will be
        converted to HTML links. Both plain text and HTML versions are sent.

        Returns:
            True if sent successfully, False otherwise
        """
        if not self._client:
            logger.warning("SendGrid not configured (SENDGRID_API_KEY not set)")
            return False

        try:
            mail = Mail(
                from_email=(self.from_email, self.from_name),
                to_emails=message.to_email,
                subject=message.subject,
                plain_text_content=markdown_to_plain_text(message.body),
                html_content=markdown_to_html(message.body),
            )
            response = self._client.send(mail)
            return response.status_code in (200, 201, 202)

        except Exception as e:
            logger.error(f"Failed to send email to {message.to_email}: {e}")
            return False

    async def deliver(self, message: EmailMessage, timeout_seconds: float) -> bool:
        """
        Send from a worker thread with a bounded wait.

        The SendGrid SDK is blocking; a timeout counts as a failed send.
        """
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.send, message), timeout=timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.error(
                f"Email to {message.to_email} timed out after {timeout_seconds}s"
            )
            return False
