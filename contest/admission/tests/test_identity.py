"""Tests for identity normalization and hashing."""

import pytest

from contest.admission.identity import identity_hash, normalize_email, normalize_phone


class TestNormalizeEmail:
    def test_trims_and_lowercases(self):
        assert normalize_email("  Dup@X.com ") == "dup@x.com"

    def test_none_becomes_empty(self):
        assert normalize_email(None) == ""


class TestNormalizePhone:
    def test_strips_punctuation_and_spaces(self):
        assert normalize_phone("(555) 123-4567") == "5551234567"

    def test_keeps_leading_plus(self):
        assert normalize_phone(" +1 555 123 4567") == "+15551234567"

    def test_plus_only_counts_at_start(self):
        assert normalize_phone("1+555") == "1555"

    def test_no_digits_is_empty(self):
        assert normalize_phone("call me") == ""
        assert normalize_phone(None) == ""

    def test_formatting_variants_collapse(self):
        """Should map differently formatted copies of a number to one value."""
        variants = ["555-123-4567", "555.123.4567", "(555)1234567", "555 123 4567"]
        assert {normalize_phone(v) for v in variants} == {"5551234567"}


class TestIdempotence:
    @pytest.mark.parametrize(
        "value", ["  A@B.Com ", "dup@x.com", "\tMixed.Case@Example.ORG", ""]
    )
    def test_email_normalized_twice_is_unchanged(self, value):
        once = normalize_email(value)
        assert normalize_email(once) == once

    @pytest.mark.parametrize(
        "value",
        [" +1 (555) 123-4567", "++1-555", "+1555123", "(555) 123-4567", "ext. 12", ""],
    )
    def test_phone_normalized_twice_is_unchanged(self, value):
        once = normalize_phone(value)
        assert normalize_phone(once) == once


class TestIdentityHash:
    def test_deterministic(self):
        assert identity_hash("a@b.co", "salt") == identity_hash("a@b.co", "salt")

    def test_salt_changes_hash(self):
        assert identity_hash("a@b.co", "salt-1") != identity_hash("a@b.co", "salt-2")

    def test_hex_sha256(self):
        value = identity_hash("a@b.co", "salt")
        assert len(value) == 64
        int(value, 16)

    def test_hash_does_not_contain_value(self):
        assert "a@b.co" not in identity_hash("a@b.co", "salt")
