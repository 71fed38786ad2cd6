"""
Deskmate Backend — Token Service Unit Tests
=============================================

What:  Tests for issuing and verifying session tokens.
How:   Pure unit tests: accounts are plain namespaces, no database.

What we test:
    ✅ A freshly issued token verifies and carries the account snapshot
    ✅ Two tokens for the same account differ
    ✅ Missing / malformed / expired / foreign-key / altered tokens are
       each reported with their own error
    ✅ A forged expired token is reported as a bad signature, not expiry
    ✅ Altering any character of a token, header and padding bits included,
       is reported as a bad signature
"""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from jose.utils import base64url_decode

from deskmate.exceptions import (
    TokenError,
    TokenExpiredError,
    TokenMalformedError,
    TokenMissingError,
    TokenSignatureInvalidError,
)
from deskmate.services.token_service import DEFAULT_TOKEN_TTL, TokenService, is_canonical

B64URL = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"


@pytest.fixture
def fake_account():
    return SimpleNamespace(
        id=uuid.uuid4(),
        username="Ada Lovelace",
        email="ada@example.com",
        password_hash="$2b$04$notarealhashnotarealhashnotarealhashnotarealhash",
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


def _alter_middle(segment: str) -> str:
    """Swap one character in the middle of a base64url segment."""
    i = len(segment) // 2
    replacement = "A" if segment[i] != "A" else "B"
    return segment[:i] + replacement + segment[i + 1:]


def _next_symbol(ch: str) -> str:
    return B64URL[(B64URL.index(ch) + 1) % len(B64URL)]


class TestIssue:

    def test_issue_then_verify_roundtrip(self, token_service, fake_account):
        claim = token_service.verify(token_service.issue(fake_account))

        assert claim.account_id == fake_account.id
        assert claim.sub == str(fake_account.id)
        assert claim.user.email == "ada@example.com"
        assert claim.user.username == "Ada Lovelace"

    def test_expiry_is_issuance_plus_ttl(self, token_service, fake_account):
        now = datetime.now(timezone.utc).replace(microsecond=0)
        claim = token_service.verify(token_service.issue(fake_account, now=now))

        assert claim.iat == int(now.timestamp())
        assert claim.expires_at == now + DEFAULT_TOKEN_TTL

    def test_default_ttl_is_twenty_days(self):
        assert DEFAULT_TOKEN_TTL == timedelta(days=20)

    def test_tokens_issued_in_same_second_differ(self, token_service, fake_account):
        now = datetime.now(timezone.utc)
        first = token_service.issue(fake_account, now=now)
        second = token_service.issue(fake_account, now=now)

        assert first != second
        assert token_service.verify(first).jti != token_service.verify(second).jti

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            TokenService("")


class TestVerify:

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token(self, token_service, token):
        with pytest.raises(TokenMissingError):
            token_service.verify(token)

    @pytest.mark.parametrize("token", ["not-a-token", "a.b", "!!!.###.$$$"])
    def test_malformed_token(self, token_service, token):
        with pytest.raises(TokenMalformedError):
            token_service.verify(token)

    def test_expired_token(self, token_service, fake_account):
        issued = datetime.now(timezone.utc) - DEFAULT_TOKEN_TTL - timedelta(minutes=1)
        token = token_service.issue(fake_account, now=issued)

        with pytest.raises(TokenExpiredError):
            token_service.verify(token)

    def test_token_from_another_secret(self, token_service, fake_account):
        foreign = TokenService("some-other-secret-entirely-0123456789")
        token = foreign.issue(fake_account)

        with pytest.raises(TokenSignatureInvalidError):
            token_service.verify(token)

    def test_altered_signature(self, token_service, fake_account):
        header, payload, signature = token_service.issue(fake_account).split(".")
        tampered = ".".join([header, payload, _alter_middle(signature)])

        with pytest.raises(TokenSignatureInvalidError):
            token_service.verify(tampered)

    def test_altered_payload(self, token_service, fake_account):
        header, payload, signature = token_service.issue(fake_account).split(".")
        tampered = ".".join([header, _alter_middle(payload), signature])

        with pytest.raises(TokenSignatureInvalidError):
            token_service.verify(tampered)

    def test_altered_header(self, token_service, fake_account):
        header, payload, signature = token_service.issue(fake_account).split(".")
        tampered = ".".join([_next_symbol(header[0]) + header[1:], payload, signature])

        with pytest.raises(TokenSignatureInvalidError):
            token_service.verify(tampered)

    def test_altered_padding_bits_of_last_signature_character(self, token_service, fake_account):
        header, payload, signature = token_service.issue(fake_account).split(".")
        # HS256 signatures are 43 characters; the last one carries 2 unused bits
        last = B64URL.index(signature[-1])
        flipped = signature[:-1] + B64URL[last ^ 1]
        assert base64url_decode(flipped.encode()) == base64url_decode(signature.encode())

        with pytest.raises(TokenSignatureInvalidError):
            token_service.verify(".".join([header, payload, flipped]))

    def test_every_altered_position_fails_signature(self, token_service, fake_account):
        token = token_service.issue(fake_account)

        accepted, misreported = [], []
        for i, ch in enumerate(token):
            if ch == ".":
                continue
            tampered = token[:i] + _next_symbol(ch) + token[i + 1:]
            try:
                token_service.verify(tampered)
            except TokenSignatureInvalidError:
                continue
            except TokenError as e:
                misreported.append((i, e.reason))
            else:
                accepted.append(i)

        assert accepted == []
        assert misreported == []

    def test_forged_expired_token_reports_signature(self, token_service, fake_account):
        foreign = TokenService("some-other-secret-entirely-0123456789")
        issued = datetime.now(timezone.utc) - timedelta(days=60)
        token = foreign.issue(fake_account, now=issued)

        with pytest.raises(TokenSignatureInvalidError):
            token_service.verify(token)

    def test_signed_payload_that_is_not_a_claim(self, token_service):
        from jose import jwt

        token = jwt.encode({"hello": "world"}, token_service._secret_key, algorithm="HS256")

        with pytest.raises(TokenMalformedError):
            token_service.verify(token)

    def test_error_reason_is_recorded(self, token_service):
        with pytest.raises(TokenMissingError) as exc_info:
            token_service.verify(None)
        assert exc_info.value.context["reason"] == "missing"


class TestCanonicalSegments:

    def test_issued_segments_are_canonical(self, token_service, fake_account):
        assert all(is_canonical(s) for s in token_service.issue(fake_account).split("."))

    def test_unused_bits_set(self):
        # "QQ" and "QR" both decode to b"A"
        assert is_canonical("QQ") is True
        assert is_canonical("QR") is False

    def test_impossible_length(self):
        assert is_canonical("QUFBQ") is False
