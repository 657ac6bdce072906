"""Unit tests for client session tokens and service bearer tokens.

WHY: The platform recomputes both token kinds bit-for-bit. A wrong field
order, a different escaping rule, or a missing nonce produces tokens that
look fine but are rejected at connect time.

HOW: Tests are organized by concern:
  - TestSessionTokenEnvelope: prefix, base64 envelope, partner id
  - TestSessionTokenFields: field order, optional fields, escaping
  - TestSessionTokenSignature: HMAC-SHA1 recomputation, wrong secret
  - TestSessionTokenValidation: rejected inputs
  - TestDecodeSessionToken: malformed tokens
  - TestServiceToken: JWT claims, algorithm, freshness, signing failures

RULES:
- Clock and nonce are injected via conftest fixtures for determinism
- JWTs are decoded with PyJWT, the same library that signs them
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import time

import jwt
import pytest

from tests._data import API_KEY, API_SECRET, FIXED_NOW, SESSION_ID, SequenceRandom
from tokbox.api.models import Role
from tokbox.errors import DecodeError, SigningError
from tokbox.tokens import (
    MAX_CONNECTION_DATA_CHARS,
    NONCE_LIMIT,
    TOKEN_PREFIX,
    TokenSigner,
    decode_session_token,
    encode_token_data,
    verify_session_token,
)


# ---------------------------------------------------------------------------
# Session token envelope
# ---------------------------------------------------------------------------


class TestSessionTokenEnvelope:
    """session_token() returns "T1==" + base64(partner_id=...&sig=...:payload)."""

    def test_starts_with_t1_prefix(self, signer):
        token = signer.session_token(SESSION_ID, Role.PUBLISHER)
        assert token.startswith("T1==")

    def test_body_is_standard_base64(self, signer):
        token = signer.session_token(SESSION_ID, Role.PUBLISHER)
        envelope = base64.b64decode(token[len(TOKEN_PREFIX):], validate=True).decode()
        assert envelope.startswith("partner_id={}&sig=".format(API_KEY))

    def test_exact_token_for_known_inputs(self, credentials, fixed_clock):
        signer = TokenSigner(credentials, clock=fixed_clock, rng=SequenceRandom([123456]))
        token = signer.session_token(SESSION_ID, Role.PUBLISHER)

        payload = "session_id={}&create_time={}&role=publisher&nonce=123456".format(
            SESSION_ID, FIXED_NOW
        )
        sig = hmac.new(API_SECRET.encode(), payload.encode(), hashlib.sha1).hexdigest()
        envelope = "partner_id={}&sig={}:{}".format(API_KEY, sig, payload)
        assert token == "T1==" + base64.b64encode(envelope.encode()).decode()

    def test_partner_id_is_api_key(self, signer):
        decoded = decode_session_token(signer.session_token(SESSION_ID))
        assert decoded.partner_id == API_KEY


# ---------------------------------------------------------------------------
# Session token fields
# ---------------------------------------------------------------------------


class TestSessionTokenFields:
    """Field order and presence follow the canonical pair list."""

    def test_minimal_field_order(self, signer):
        decoded = decode_session_token(signer.session_token(SESSION_ID, role=None))
        assert list(decoded.fields) == ["session_id", "create_time", "nonce"]

    def test_full_field_order(self, signer):
        token = signer.session_token(
            SESSION_ID, Role.MODERATOR, connection_data="user=1", expire_in=60
        )
        decoded = decode_session_token(token)
        assert list(decoded.fields) == [
            "session_id",
            "create_time",
            "expire_time",
            "role",
            "connection_data",
            "nonce",
        ]

    def test_create_time_is_clock_seconds(self, signer):
        decoded = decode_session_token(signer.session_token(SESSION_ID))
        assert decoded.fields["create_time"] == str(FIXED_NOW)

    def test_expire_time_equals_create_time_plus_expiry(self, signer):
        decoded = decode_session_token(signer.session_token(SESSION_ID, expire_in=86400))
        assert int(decoded.fields["expire_time"]) == int(decoded.fields["create_time"]) + 86400

    def test_no_expire_time_when_expiry_is_zero(self, signer):
        decoded = decode_session_token(signer.session_token(SESSION_ID, expire_in=0))
        assert "expire_time" not in decoded.fields

    def test_role_accepts_string_value(self, signer):
        decoded = decode_session_token(signer.session_token(SESSION_ID, role="subscriber"))
        assert decoded.fields["role"] == "subscriber"

    def test_empty_role_is_omitted(self, signer):
        decoded = decode_session_token(signer.session_token(SESSION_ID, role=""))
        assert "role" not in decoded.fields

    def test_empty_connection_data_is_omitted(self, signer):
        decoded = decode_session_token(signer.session_token(SESSION_ID, Role.PUBLISHER))
        assert "connection_data" not in decoded.fields

    def test_connection_data_is_query_escaped(self, signer):
        data = "name=Bob Smith&team=a/b"
        decoded = decode_session_token(signer.session_token(SESSION_ID, connection_data=data))
        assert "connection_data=name%3DBob+Smith%26team%3Da%2Fb" in decoded.payload
        assert decoded.fields["connection_data"] == data

    def test_session_id_tilde_is_not_escaped(self, signer):
        decoded = decode_session_token(signer.session_token(SESSION_ID))
        assert decoded.payload.startswith("session_id={}&".format(SESSION_ID))

    def test_nonce_drawn_below_limit(self, credentials, fixed_clock):
        rng = SequenceRandom([42])
        signer = TokenSigner(credentials, clock=fixed_clock, rng=rng)
        decoded = decode_session_token(signer.session_token(SESSION_ID))
        assert rng.calls == [NONCE_LIMIT]
        assert decoded.fields["nonce"] == "42"

    def test_two_mints_differ_but_carry_same_grant(self, signer):
        first = signer.session_token(SESSION_ID, Role.PUBLISHER, "user=1", 3600)
        second = signer.session_token(SESSION_ID, Role.PUBLISHER, "user=1", 3600)
        assert first != second

        a = decode_session_token(first).fields
        b = decode_session_token(second).fields
        for key in ("session_id", "role", "connection_data", "expire_time"):
            assert a[key] == b[key]
        assert a["nonce"] != b["nonce"]

    def test_default_rng_and_clock(self, credentials):
        signer = TokenSigner(credentials)
        before = int(time.time())
        fields = decode_session_token(signer.session_token(SESSION_ID)).fields
        assert before <= int(fields["create_time"]) <= int(time.time())
        assert 0 <= int(fields["nonce"]) < NONCE_LIMIT

    def test_encode_token_data_keeps_order(self):
        assert encode_token_data([("b", "1"), ("a", "x y")]) == "b=1&a=x+y"


# ---------------------------------------------------------------------------
# Signature
# ---------------------------------------------------------------------------


class TestSessionTokenSignature:
    """The sig field is HMAC-SHA1(secret, payload) in lowercase hex."""

    def test_signature_recomputes(self, signer):
        decoded = decode_session_token(signer.session_token(SESSION_ID, Role.PUBLISHER, "x", 10))
        expected = hmac.new(API_SECRET.encode(), decoded.payload.encode(), hashlib.sha1).hexdigest()
        assert decoded.signature == expected
        assert decoded.signature == decoded.signature.lower()
        assert len(decoded.signature) == 40

    def test_verify_with_correct_secret(self, signer):
        assert verify_session_token(signer.session_token(SESSION_ID), API_SECRET)

    def test_verify_with_wrong_secret(self, signer):
        assert not verify_session_token(signer.session_token(SESSION_ID), "not-the-secret")

    def test_tampered_payload_fails_verification(self, signer):
        decoded = decode_session_token(signer.session_token(SESSION_ID, Role.SUBSCRIBER))
        forged_payload = decoded.payload.replace("role=subscriber", "role=moderator")
        envelope = "partner_id={}&sig={}:{}".format(API_KEY, decoded.signature, forged_payload)
        forged = TOKEN_PREFIX + base64.b64encode(envelope.encode()).decode()
        assert not verify_session_token(forged, API_SECRET)


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class TestSessionTokenValidation:

    def test_negative_expiry_rejected(self, signer):
        with pytest.raises(ValueError, match="expire_in"):
            signer.session_token(SESSION_ID, expire_in=-1)

    def test_oversized_connection_data_rejected(self, signer):
        with pytest.raises(ValueError, match="connection_data"):
            signer.session_token(SESSION_ID, connection_data="x" * (MAX_CONNECTION_DATA_CHARS + 1))

    def test_connection_data_at_limit_accepted(self, signer):
        token = signer.session_token(SESSION_ID, connection_data="x" * MAX_CONNECTION_DATA_CHARS)
        assert token.startswith(TOKEN_PREFIX)

    def test_unknown_role_rejected(self, signer):
        with pytest.raises(ValueError):
            signer.session_token(SESSION_ID, role="admin")


# ---------------------------------------------------------------------------
# decode_session_token
# ---------------------------------------------------------------------------


class TestDecodeSessionToken:
    """decode_session_token raises DecodeError on malformed input."""

    def test_missing_prefix(self):
        with pytest.raises(DecodeError):
            decode_session_token("T2==abcd")

    def test_invalid_base64(self):
        with pytest.raises(DecodeError):
            decode_session_token("T1==not base64!!")

    def test_envelope_without_signature(self):
        body = base64.b64encode(b"partner_id=1:session_id=x").decode()
        with pytest.raises(DecodeError):
            decode_session_token(TOKEN_PREFIX + body)


# ---------------------------------------------------------------------------
# Service bearer token
# ---------------------------------------------------------------------------


class TestServiceToken:
    """service_token() returns an HS256 JWT issued by the API key."""

    def test_claims(self, credentials):
        signer = TokenSigner(credentials, uuid_factory=lambda: "jti-1")
        claims = jwt.decode(signer.service_token(), API_SECRET, algorithms=["HS256"])
        assert claims["iss"] == API_KEY
        assert claims["ist"] == "project"
        assert claims["jti"] == "jti-1"
        assert claims["exp"] > claims["iat"]

    def test_default_lifetime_is_five_minutes(self, signer):
        claims = jwt.decode(
            signer.service_token(),
            API_SECRET,
            algorithms=["HS256"],
            options={"verify_exp": False, "verify_iat": False},
        )
        assert claims["iat"] == FIXED_NOW
        assert claims["exp"] - claims["iat"] == 300

    def test_custom_lifetime(self, credentials, fixed_clock):
        signer = TokenSigner(credentials, clock=fixed_clock, jwt_ttl=120)
        claims = jwt.decode(
            signer.service_token(),
            API_SECRET,
            algorithms=["HS256"],
            options={"verify_exp": False, "verify_iat": False},
        )
        assert claims["exp"] == FIXED_NOW + 120

    def test_non_positive_lifetime_rejected(self, credentials):
        with pytest.raises(ValueError):
            TokenSigner(credentials, jwt_ttl=0)

    def test_header_algorithm(self, signer):
        assert jwt.get_unverified_header(signer.service_token())["alg"] == "HS256"

    def test_wrong_secret_fails(self, credentials):
        token = TokenSigner(credentials).service_token()
        with pytest.raises(jwt.InvalidSignatureError):
            jwt.decode(token, "wrong-secret-wrong-secret-wrong-secret!!", algorithms=["HS256"])

    def test_fresh_token_each_call(self, credentials):
        signer = TokenSigner(credentials)
        first = jwt.decode(signer.service_token(), API_SECRET, algorithms=["HS256"])
        second = jwt.decode(signer.service_token(), API_SECRET, algorithms=["HS256"])
        assert first["jti"] != second["jti"]

    def test_signing_failure_raises_signing_error(self, signer, monkeypatch):
        def _boom(*args, **kwargs):
            raise jwt.PyJWTError("key rejected")

        monkeypatch.setattr("tokbox.tokens.jwt.encode", _boom)
        with pytest.raises(SigningError) as excinfo:
            signer.service_token()
        assert API_SECRET not in str(excinfo.value)
        assert isinstance(excinfo.value.__cause__, jwt.PyJWTError)
