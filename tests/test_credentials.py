"""
tests/test_credentials.py -- Unit tests for CredentialValidator and secret matchers.

Coverage:
  - Matching secret returns a principal with no secret field
  - Unknown identifier and wrong secret both return None
  - Unknown identifier still runs one comparison (timing equalization)
  - Lookup errors propagate unchanged
  - bcrypt scheme: hashed stored secrets, malformed hashes are mismatches,
    secrets over 72 bytes refused at hashing time
  - Secrets that are not encodable UTF-8 compare as mismatches, never errors
"""

from __future__ import annotations

from dataclasses import fields
from unittest.mock import MagicMock

import pytest

from auth.credentials import CredentialValidator
from auth.models import AuthenticatedPrincipal, UserRecord
from auth.passwords import (
    BcryptMatcher,
    PlaintextMatcher,
    hash_password,
    matcher_for_scheme,
    stored_form,
    verify_password,
)
from helpers import ALICE, DictLookup


class TestValidate:
    def test_matching_secret_returns_principal(self, lookup: DictLookup) -> None:
        principal = CredentialValidator(lookup).validate("alice@example.com", "hunter2")
        assert principal == AuthenticatedPrincipal(
            subject_id="42",
            identifier="alice@example.com",
            display_name="Alice",
            attributes={"team": "platform"},
        )

    def test_principal_has_no_secret(self, lookup: DictLookup) -> None:
        principal = CredentialValidator(lookup).validate("alice@example.com", "hunter2")
        assert principal is not None
        assert "secret" not in {f.name for f in fields(principal)}
        assert not hasattr(principal, "secret")

    def test_principal_attributes_are_a_copy(self, lookup: DictLookup) -> None:
        principal = CredentialValidator(lookup).validate("alice@example.com", "hunter2")
        assert principal is not None
        principal.attributes["team"] = "changed"
        assert ALICE.attributes["team"] == "platform"

    def test_wrong_secret_returns_none(self, lookup: DictLookup) -> None:
        assert CredentialValidator(lookup).validate("alice@example.com", "wrong") is None

    def test_unknown_identifier_returns_none(self, lookup: DictLookup) -> None:
        assert CredentialValidator(lookup).validate("mallory@example.com", "hunter2") is None

    def test_unknown_and_wrong_secret_are_indistinguishable(self, lookup: DictLookup) -> None:
        validator = CredentialValidator(lookup)
        unknown = validator.validate("nobody@example.com", "hunter2")
        wrong = validator.validate("alice@example.com", "nope")
        assert unknown is wrong is None

    def test_comparison_is_exact(self, lookup: DictLookup) -> None:
        validator = CredentialValidator(lookup)
        assert validator.validate("alice@example.com", "Hunter2") is None
        assert validator.validate("alice@example.com", "hunter2 ") is None
        assert validator.validate("ALICE@example.com", "hunter2") is None

    def test_undecodable_secret_is_a_mismatch(self, lookup: DictLookup) -> None:
        # Lone surrogate, as produced by surrogateescape-decoded argv bytes.
        assert CredentialValidator(lookup).validate("alice@example.com", "\udcff") is None

    def test_unknown_identifier_still_compares_once(self) -> None:
        matcher = MagicMock()
        matcher.dummy_stored = "dummy"
        matcher.matches.return_value = False
        validator = CredentialValidator(DictLookup(), matcher)
        assert validator.validate("ghost@example.com", "pw") is None
        matcher.matches.assert_called_once_with("pw", "dummy")

    def test_lookup_is_called_once_with_identifier(self, lookup: DictLookup) -> None:
        CredentialValidator(lookup).validate("alice@example.com", "hunter2")
        assert lookup.calls == ["alice@example.com"]

    def test_lookup_error_propagates(self) -> None:
        failing = MagicMock()
        failing.find_user_by_identifier.side_effect = ConnectionError("store down")
        with pytest.raises(ConnectionError, match="store down"):
            CredentialValidator(failing).validate("alice@example.com", "hunter2")


class TestBcryptScheme:
    def test_hashed_secret_validates(self) -> None:
        record = UserRecord(identifier="bob", secret=hash_password("s3cret"), subject_id="7")
        validator = CredentialValidator(DictLookup(record), BcryptMatcher())
        principal = validator.validate("bob", "s3cret")
        assert principal is not None
        assert principal.subject_id == "7"
        assert validator.validate("bob", "s3cret!") is None

    def test_plaintext_stored_value_is_a_mismatch_not_an_error(self) -> None:
        assert verify_password("hunter2", "hunter2") is False

    def test_secret_over_72_bytes_rejected_when_hashing(self) -> None:
        with pytest.raises(ValueError, match="72"):
            hash_password("x" * 73)
        # 25 three-byte characters: well under 72 characters, 75 bytes.
        with pytest.raises(ValueError):
            hash_password("\u20ac" * 25)

    def test_72_byte_secret_hashes(self) -> None:
        assert verify_password("x" * 72, hash_password("x" * 72))

    def test_undecodable_secret_against_hash_is_a_mismatch(self) -> None:
        assert BcryptMatcher().matches("\udcff", hash_password("hunter2")) is False

    def test_hash_is_salted(self) -> None:
        assert hash_password("same") != hash_password("same")


class TestSchemeSelection:
    def test_matcher_for_scheme(self) -> None:
        assert isinstance(matcher_for_scheme("plain"), PlaintextMatcher)
        assert isinstance(matcher_for_scheme("bcrypt"), BcryptMatcher)

    def test_unknown_scheme_rejected(self) -> None:
        with pytest.raises(ValueError, match="argon2"):
            matcher_for_scheme("argon2")

    def test_stored_form(self) -> None:
        assert stored_form("plain", "hunter2") == "hunter2"
        hashed = stored_form("bcrypt", "hunter2")
        assert hashed != "hunter2"
        assert verify_password("hunter2", hashed)
