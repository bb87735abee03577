"""Tests for message template loading and rendering."""

import pytest

from contest.notifications.templates import (
    build_context,
    get_message,
    load_templates,
    render_message,
)


class TestLoadTemplates:
    def test_every_template_has_both_locales_and_fields(self):
        templates = load_templates()

        for message_type in ("confirmation", "reminder", "draw"):
            for locale in ("en", "fr"):
                copy = templates[message_type][locale]
                assert copy["email_subject"]
                assert "{first_name}" in copy["email_body"]
                assert "{landing_page_url}" in copy["email_body"]


class TestRenderMessage:
    def test_renders_variables(self):
        assert render_message("Hello {name}!", {"name": "Alice"}) == "Hello Alice!"

    def test_missing_variable_raises(self):
        with pytest.raises(KeyError):
            render_message("Hello {name}!", {})


class TestGetMessage:
    def test_english_subjects(self):
        context = build_context("en", "Ada", "https://contest.example.com")

        assert get_message("confirmation", "en", "email_subject", context) == "Entry Confirmation"
        assert get_message("reminder", "en", "email_subject", context) == "Countdown to Kickoff!"
        assert get_message("draw", "en", "email_subject", context) == "Draw Day"

    def test_french_body_uses_name_and_link(self):
        context = build_context("fr", "Marie", "https://contest.example.com")

        body = get_message("draw", "fr", "email_body", context)

        assert body.startswith("Bonjour Marie,")
        assert "(https://contest.example.com)" in body

    def test_unknown_locale_falls_back_to_english(self):
        context = build_context("de", "Ada", "https://contest.example.com")
        assert get_message("draw", "de", "email_subject", context) == "Draw Day"


class TestBuildContext:
    def test_fallback_name_per_locale(self):
        assert build_context("en", None, "u")["first_name"] == "there"
        assert build_context("fr", "", "u")["first_name"] == "à vous"
