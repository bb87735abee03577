"""Tests for the SendGrid email channel."""

import asyncio
import time
from unittest.mock import MagicMock, patch

import pytest

from contest.notifications.channels.email import (
    EmailMessage,
    EmailSender,
    markdown_to_html,
    markdown_to_plain_text,
)


def make_message():
    return EmailMessage(
        to_email="alice@example.com",
        subject="Entry Confirmation",
        body="Hi Alice, [details](https://contest.example.com)",
    )


def configured_sender(mock_client):
    with patch(
        "contest.notifications.channels.email.SendGridAPIClient",
        return_value=mock_client,
    ):
        return EmailSender("SG.test-key", "contest@example.com", "Contest Team")


class TestSend:
    def test_sends_email_via_sendgrid(self):
        mock_client = MagicMock()
        mock_client.send.return_value = MagicMock(status_code=202)
        sender = configured_sender(mock_client)

        assert sender.send(make_message()) is True
        mock_client.send.assert_called_once()

    def test_returns_false_on_failure(self):
        mock_client = MagicMock()
        mock_client.send.side_effect = Exception("API error")

        assert configured_sender(mock_client).send(make_message()) is False

    def test_returns_false_on_error_status(self):
        mock_client = MagicMock()
        mock_client.send.return_value = MagicMock(status_code=400)

        assert configured_sender(mock_client).send(make_message()) is False

    def test_returns_false_when_not_configured(self, caplog):
        sender = EmailSender(None, "contest@example.com", "Contest Team")

        assert sender.is_configured is False
        assert sender.send(make_message()) is False
        assert any("not configured" in r.message for r in caplog.records)


class TestDeliver:
    @pytest.mark.asyncio
    async def test_returns_send_result(self):
        mock_client = MagicMock()
        mock_client.send.return_value = MagicMock(status_code=202)

        assert await configured_sender(mock_client).deliver(make_message(), 5) is True

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self):
        mock_client = MagicMock()
        mock_client.send.side_effect = lambda mail: time.sleep(0.5)

        result = await configured_sender(mock_client).deliver(make_message(), 0.05)

        assert result is False
        # Let the worker thread finish before the loop closes
        await asyncio.sleep(0.5)


class TestMarkdownConversion:
    def test_markdown_to_html_converts_links(self):
        html = markdown_to_html("Click [here](https://example.com) to continue.")

        assert '<a href="https://example.com">here</a>' in html
        assert "[here]" not in html

    def test_markdown_to_html_preserves_newlines(self):
        assert "<br>" in markdown_to_html("Line 1\nLine 2")

    def test_markdown_to_html_wraps_in_html_structure(self):
        html = markdown_to_html("Hello")

        assert "<!DOCTYPE html>" in html
        assert "<body" in html

    def test_markdown_to_plain_text_converts_links(self):
        plain = markdown_to_plain_text("[Link 1](https://one.com) and [Link 2](https://two.com)")

        assert plain == "Link 1 (https://one.com) and Link 2 (https://two.com)"

    def test_markdown_to_plain_text_preserves_non_links(self):
        text = "No links here, just text."
        assert markdown_to_plain_text(text) == text
