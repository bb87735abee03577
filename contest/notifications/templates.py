"""Message template loading and rendering."""

from pathlib import Path

import yaml

from contest.enums import DEFAULT_LOCALE


_templates: dict | None = None


def load_templates() -> dict:
    """
    Load message templates from YAML file.

    Caches templates after first load.
    """
    global _templates
    if _templates is not None:
        return _templates

    yaml_path = Path(__file__).parent / "messages.yaml"
    with open(yaml_path, encoding="utf-8") as f:
        _templates = yaml.safe_load(f)

    return _templates


def render_message(template: str, context: dict) -> str:
    """
    Render a message template with context variables.

    Args:
        template: String with {variable} placeholders
        context: Dict of variable names to values

    Returns:
        Rendered string

    Raises:
        KeyError: If a required variable is missing from context
    """
    return template.format(**context)


def get_message(message_type: str, locale: str, field: str, context: dict) -> str:
    """
    Get and render a message for a specific type, locale and field.

    Falls back to the default locale when the requested one has no copy.

    Args:
        message_type: e.g., "confirmation", "reminder", "draw"
        locale: e.g., "en", "fr"
        field: "email_subject" or "email_body"
        context: Variables to substitute

    Returns:
        Rendered message string
    """
    templates = load_templates()
    by_locale = templates[message_type]
    template = by_locale.get(locale, by_locale[DEFAULT_LOCALE])[field]
    return render_message(template, context)


# Greeting name when the entrant gave no first name
FALLBACK_NAMES = {"en": "there", "fr": "à vous"}


def build_context(locale: str, first_name: str | None, landing_page_url: str) -> dict:
    """Template variables shared by every contest email."""
    return {
        "first_name": first_name or FALLBACK_NAMES.get(locale, FALLBACK_NAMES[DEFAULT_LOCALE]),
        "landing_page_url": landing_page_url,
    }
