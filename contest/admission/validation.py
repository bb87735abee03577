"""
Submission validation.

Validator.validate() turns a raw JSON body into a normalized Submission or
raises InvalidInput naming the first missing or malformed field. It performs
no I/O, so nothing is written when it fails.

Which profile fields are required, and whether consent is, depends on the
contest. Rules come from an optional YAML file:

    contests:
      clientA-2026-worldcup:
        consent_required: true
        required_fields: [firstName, lastName]
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from contest.admission.identity import normalize_email, normalize_phone
from contest.admission.types import Submission
from contest.enums import DEFAULT_LOCALE, SUPPORTED_LOCALES
from contest.errors import ConfigurationError, InvalidInput

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Keys with a dedicated meaning; everything else is a profile field
RESERVED_FIELDS = {
    "contestId",
    "drawAtIso",
    "reminderAtIso",
    "locale",
    "consent",
    "email",
    "phone",
}


@dataclass(frozen=True)
class ContestRules:
    consent_required: bool = True
    required_fields: tuple[str, ...] = ()


DEFAULT_RULES = ContestRules()


def load_contest_rules(path: Path | None) -> dict[str, ContestRules]:
    """
    Load per-contest rules from YAML.

    Returns an empty mapping when no path is configured.

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    if path is None:
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read contest rules from {path}: {e}")

    contests = data.get("contests") or {}
    if not isinstance(contests, dict):
        raise ConfigurationError(f"'contests' in {path} must be a mapping")

    rules = {}
    for contest_id, options in contests.items():
        options = options or {}
        rules[str(contest_id)] = ContestRules(
            consent_required=bool(options.get("consent_required", True)),
            required_fields=tuple(options.get("required_fields") or ()),
        )
    logger.info(f"Loaded rules for {len(rules)} contest(s) from {path}")
    return rules


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive timestamps are read as UTC. Returns None if unparseable.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


class Validator:
    """Structural checks for raw submissions, per contest rules."""

    def __init__(
        self,
        rules: dict[str, ContestRules] | None = None,
        default_rules: ContestRules = DEFAULT_RULES,
    ):
        self._rules = rules or {}
        self._default_rules = default_rules

    def rules_for(self, contest_id: str) -> ContestRules:
        return self._rules.get(contest_id, self._default_rules)

    def validate(self, raw: dict) -> Submission:
        """
        Validate and normalize a raw submission.

        Raises:
            InvalidInput: With the first failing field, e.g. "contestId required"
        """
        if not isinstance(raw, dict):
            raise InvalidInput("invalid body")

        contest_id = raw.get("contestId")
        if not isinstance(contest_id, str) or not contest_id.strip():
            raise InvalidInput("contestId required")
        contest_id = contest_id.strip()

        if _is_blank(raw.get("drawAtIso")):
            raise InvalidInput("drawAtIso required")

        rules = self.rules_for(contest_id)
        consent = raw.get("consent")
        if consent is None:
            consent = False
        if rules.consent_required and consent is not True:
            raise InvalidInput("consent required")
        if not isinstance(consent, bool):
            raise InvalidInput("invalid consent")
        for name in rules.required_fields:
            if _is_blank(raw.get(name)):
                raise InvalidInput(f"{name} required")

        email = normalize_email(_as_text(raw.get("email")))
        if not email:
            raise InvalidInput("email required")
        if not EMAIL_PATTERN.match(email):
            raise InvalidInput("invalid email")

        phone = normalize_phone(_as_text(raw.get("phone")))
        if not phone:
            raise InvalidInput("phone required")

        draw_at = parse_timestamp(raw.get("drawAtIso"))
        if draw_at is None:
            raise InvalidInput("invalid drawAtIso")

        reminder_at = None
        if not _is_blank(raw.get("reminderAtIso")):
            reminder_at = parse_timestamp(raw.get("reminderAtIso"))
            if reminder_at is None:
                raise InvalidInput("invalid reminderAtIso")

        locale = raw.get("locale") or DEFAULT_LOCALE
        if locale not in SUPPORTED_LOCALES:
            raise InvalidInput("invalid locale")

        profile = {
            key: value.strip() if isinstance(value, str) else value
            for key, value in raw.items()
            if key not in RESERVED_FIELDS
        }

        return Submission(
            contest_id=contest_id,
            draw_at=draw_at,
            reminder_at=reminder_at,
            email=email,
            phone=phone,
            locale=locale,
            consent=consent,
            profile=profile,
        )


def _as_text(value: Any) -> str | None:
    """Phones sometimes arrive as numbers; emails never should."""
    if value is None:
        return None
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        return str(value)
    return None
