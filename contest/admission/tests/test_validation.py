"""Tests for submission validation."""

from datetime import datetime, timezone

import pytest

from contest.admission.validation import (
    ContestRules,
    Validator,
    load_contest_rules,
    parse_timestamp,
)
from contest.errors import ConfigurationError, InvalidInput


def valid_body(**overrides):
    body = {
        "contestId": "clientA-2026-worldcup",
        "drawAtIso": "2026-06-12T19:00:00Z",
        "locale": "fr",
        "consent": True,
        "email": "  Fan@Example.COM ",
        "phone": "(555) 123-4567",
        "firstName": " Marie ",
        "lastName": "Curie",
    }
    body.update(overrides)
    return body


def reason_for(body, validator=None):
    with pytest.raises(InvalidInput) as exc_info:
        (validator or Validator()).validate(body)
    return exc_info.value.reason


class TestValidate:
    def test_normalizes_valid_submission(self):
        submission = Validator().validate(valid_body())

        assert submission.contest_id == "clientA-2026-worldcup"
        assert submission.email == "fan@example.com"
        assert submission.phone == "5551234567"
        assert submission.locale == "fr"
        assert submission.consent is True
        assert submission.draw_at == datetime(2026, 6, 12, 19, 0, tzinfo=timezone.utc)
        assert submission.reminder_at is None

    def test_profile_holds_non_reserved_fields(self):
        submission = Validator().validate(valid_body())

        assert submission.profile == {"firstName": "Marie", "lastName": "Curie"}

    def test_locale_defaults_to_en(self):
        body = valid_body()
        del body["locale"]
        assert Validator().validate(body).locale == "en"

    def test_explicit_reminder_time_parsed(self):
        submission = Validator().validate(
            valid_body(reminderAtIso="2026-06-11T09:00:00+02:00")
        )
        assert submission.reminder_at == datetime(2026, 6, 11, 7, 0, tzinfo=timezone.utc)

    def test_numeric_phone_accepted(self):
        assert Validator().validate(valid_body(phone=5551234567)).phone == "5551234567"

    @pytest.mark.parametrize(
        "overrides,reason",
        [
            ({"contestId": None}, "contestId required"),
            ({"contestId": "   "}, "contestId required"),
            ({"drawAtIso": ""}, "drawAtIso required"),
            ({"consent": False}, "consent required"),
            ({"consent": "false"}, "consent required"),
            ({"consent": "true"}, "consent required"),
            ({"consent": 1}, "consent required"),
            ({"email": ""}, "email required"),
            ({"email": "not-an-email"}, "invalid email"),
            ({"phone": "n/a"}, "phone required"),
            ({"drawAtIso": "next tuesday"}, "invalid drawAtIso"),
            ({"reminderAtIso": "soon"}, "invalid reminderAtIso"),
            ({"locale": "de"}, "invalid locale"),
        ],
    )
    def test_rejects_with_reason(self, overrides, reason):
        assert reason_for(valid_body(**overrides)) == reason

    def test_non_dict_body_rejected(self):
        assert reason_for(["not", "an", "object"]) == "invalid body"

    def test_first_failure_wins(self):
        """Should report contestId before any other missing field."""
        assert reason_for({"email": "bad"}) == "contestId required"

    def test_contest_rules_require_fields(self):
        validator = Validator(
            {"clientA-2026-worldcup": ContestRules(required_fields=("lastName",))}
        )
        assert reason_for(valid_body(lastName=" "), validator) == "lastName required"

    def test_contest_rules_can_waive_consent(self):
        validator = Validator(
            {"clientA-2026-worldcup": ContestRules(consent_required=False)}
        )
        submission = validator.validate(valid_body(consent=False))
        assert submission.consent is False

    @pytest.mark.parametrize("consent", ["no", "false", 0, "yes"])
    def test_waived_consent_must_still_be_boolean(self, consent):
        validator = Validator(
            {"clientA-2026-worldcup": ContestRules(consent_required=False)}
        )
        assert reason_for(valid_body(consent=consent), validator) == "invalid consent"

    def test_waived_consent_may_be_omitted(self):
        validator = Validator(
            {"clientA-2026-worldcup": ContestRules(consent_required=False)}
        )
        body = valid_body()
        del body["consent"]
        assert validator.validate(body).consent is False

    def test_other_contests_use_default_rules(self):
        validator = Validator({"other": ContestRules(consent_required=False)})
        assert reason_for(valid_body(consent=False), validator) == "consent required"


class TestParseTimestamp:
    def test_z_suffix(self):
        assert parse_timestamp("2026-03-17T20:00:00Z") == datetime(
            2026, 3, 17, 20, 0, tzinfo=timezone.utc
        )

    def test_naive_read_as_utc(self):
        assert parse_timestamp("2026-03-17T20:00:00").tzinfo == timezone.utc

    @pytest.mark.parametrize("value", [None, "", "garbage", 12345])
    def test_unparseable_is_none(self, value):
        assert parse_timestamp(value) is None


class TestLoadContestRules:
    def test_no_path_means_no_rules(self):
        assert load_contest_rules(None) == {}

    def test_reads_yaml(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(
            "contests:\n"
            "  clientA-2026-worldcup:\n"
            "    consent_required: false\n"
            "    required_fields: [firstName, lastName]\n"
            "  clientB-2026-cup:\n"
        )

        rules = load_contest_rules(path)

        assert rules["clientA-2026-worldcup"] == ContestRules(
            consent_required=False, required_fields=("firstName", "lastName")
        )
        assert rules["clientB-2026-cup"] == ContestRules()

    def test_missing_file_is_configuration_error(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_contest_rules(tmp_path / "missing.yaml")

    def test_contests_must_be_mapping(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("contests: [a, b]\n")
        with pytest.raises(ConfigurationError):
            load_contest_rules(path)
