"""Tests for token issuance and verification."""

from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from jose import jwt

from backend.app.core import tokens
from backend.app.core.exceptions import (
    TokenExpiredError,
    TokenInvalidError,
    TokenKindMismatchError,
)
from backend.app.core.tokens import (
    ALGORITHM,
    TokenKind,
    create_access_token,
    create_email_verification_token,
    create_password_reset_token,
    create_refresh_token,
    decode_token,
)


SUBJECT = str(uuid.uuid4())


class TestIssue:
    def test_access_token_carries_subject_and_kind(self) -> None:
        payload = decode_token(create_access_token(SUBJECT), TokenKind.ACCESS)
        assert payload["sub"] == SUBJECT
        assert payload["type"] == "access"

    def test_access_lifetime_defaults_to_24h(self) -> None:
        payload = decode_token(create_access_token(SUBJECT), TokenKind.ACCESS)
        assert payload["exp"] - payload["iat"] == 24 * 3600

    def test_refresh_lifetime_defaults_to_7d(self) -> None:
        payload = decode_token(create_refresh_token(SUBJECT), TokenKind.REFRESH)
        assert payload["type"] == "refresh"
        assert payload["exp"] - payload["iat"] == 7 * 24 * 3600

    def test_reset_token_has_no_subject(self) -> None:
        payload = decode_token(create_password_reset_token(), TokenKind.PASSWORD_RESET)
        assert "sub" not in payload
        assert payload["exp"] - payload["iat"] == 3600

    def test_verification_token(self) -> None:
        token = create_email_verification_token(SUBJECT)
        payload = decode_token(token, TokenKind.EMAIL_VERIFICATION)
        assert payload["sub"] == SUBJECT
        assert payload["exp"] - payload["iat"] == 24 * 3600

    def test_tokens_are_unique_even_when_issued_together(self) -> None:
        assert create_refresh_token(SUBJECT) != create_refresh_token(SUBJECT)
        assert create_access_token(SUBJECT) != create_access_token(SUBJECT)

    def test_subject_required_for_access(self) -> None:
        with pytest.raises(ValueError):
            tokens.create_token(TokenKind.ACCESS, None)


class TestVerify:
    def test_expired_is_distinguished_from_invalid(self) -> None:
        expired = create_access_token(SUBJECT, expires_delta=timedelta(seconds=-5))
        with pytest.raises(TokenExpiredError):
            decode_token(expired, TokenKind.ACCESS)

    def test_tampered_token_is_invalid(self) -> None:
        head, _, sig = create_access_token(SUBJECT).split(".")
        other_body = create_access_token(str(uuid.uuid4())).split(".")[1]
        tampered = ".".join([head, other_body, sig])
        with pytest.raises(TokenInvalidError):
            decode_token(tampered, TokenKind.ACCESS)

    def test_garbage_is_invalid(self) -> None:
        with pytest.raises(TokenInvalidError):
            decode_token("not-a-token", TokenKind.ACCESS)

    @pytest.mark.parametrize(
        ("issued", "expected"),
        [
            (TokenKind.REFRESH, TokenKind.ACCESS),
            (TokenKind.ACCESS, TokenKind.REFRESH),
            (TokenKind.EMAIL_VERIFICATION, TokenKind.ACCESS),
            (TokenKind.PASSWORD_RESET, TokenKind.EMAIL_VERIFICATION),
        ],
    )
    def test_cross_kind_use_rejected(self, issued: TokenKind, expected: TokenKind) -> None:
        subject = None if issued is TokenKind.PASSWORD_RESET else SUBJECT
        token = tokens.create_token(issued, subject)
        with pytest.raises(TokenInvalidError):
            decode_token(token, expected)

    def test_wrong_type_claim_with_valid_signature(self) -> None:
        # Signed with the access key but claiming to be a refresh token
        forged = jwt.encode(
            {"sub": SUBJECT, "type": "refresh", "exp": 4102444800},
            tokens._signing_key(TokenKind.ACCESS),
            algorithm=ALGORITHM,
        )
        with pytest.raises(TokenKindMismatchError):
            decode_token(forged, TokenKind.ACCESS)

    def test_missing_subject_rejected(self) -> None:
        forged = jwt.encode(
            {"type": "access", "exp": 4102444800},
            tokens._signing_key(TokenKind.ACCESS),
            algorithm=ALGORITHM,
        )
        with pytest.raises(TokenKindMismatchError):
            decode_token(forged, TokenKind.ACCESS)

    def test_each_kind_has_its_own_key(self) -> None:
        keys = {tokens._signing_key(kind) for kind in TokenKind}
        assert len(keys) == len(TokenKind)
