"""Token signing: client session tokens and service bearer tokens.

WHY: TokBox validates two kinds of credentials bit-for-bit. Clients joining a
session present a legacy "T1==" token signed with HMAC-SHA1; this library
authenticates its own REST calls with a short-lived HS256 JWT. Both must be
built exactly the way the platform recomputes them.

HOW: TokenSigner holds the project credentials plus three injectable
capabilities (clock, nonce RNG, UUID factory) so tests can make output
deterministic. session_token() assembles ordered key/value pairs, encodes
them once with encode_token_data(), signs that exact string, and embeds it
next to the signature. service_token() builds the claim set and signs it with
PyJWT.

RULES:
- Canonical encoding is urllib.parse.urlencode over the ordered pairs:
  key=value joined by "&", values escaped with quote_plus (space -> "+")
- Pair order: session_id, create_time, expire_time?, role?, connection_data?, nonce
- expire_time is present iff expire_in > 0 and equals create_time + expire_in
- nonce is drawn from [0, 999999) on every call
- Final token: "T1==" + base64("partner_id=<key>&sig=<hex sha1>:<encoded pairs>")
- Service tokens are minted per request and never cached
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import random
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union
from urllib.parse import parse_qsl, urlencode

import jwt

from tokbox.api.models import Role
from tokbox.config import Credentials, load_jwt_ttl
from tokbox.errors import DecodeError, SigningError

TOKEN_PREFIX = "T1=="
NONCE_LIMIT = 999999
MAX_CONNECTION_DATA_CHARS = 1000
"""Platform limit on the connection_data string embedded in a token."""

SERVICE_TOKEN_HEADER = "X-OPENTOK-AUTH"


def encode_token_data(pairs: List[Tuple[str, str]]) -> str:
    """Encode ordered pairs with the canonical token encoding.

    The returned string is both the HMAC input and the text embedded in the
    token, so it must never be re-encoded after signing.
    """
    return urlencode(pairs)


def _hmac_sha1_hex(secret: str, payload: str) -> str:
    try:
        return hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha1).hexdigest()
    except (TypeError, ValueError) as exc:
        raise SigningError("failed to compute session token signature") from exc


@dataclass(frozen=True)
class DecodedSessionToken:
    """The parts of a T1 session token, as parsed by decode_session_token."""

    partner_id: str
    signature: str
    payload: str
    fields: Dict[str, str]


def decode_session_token(token: str) -> DecodedSessionToken:
    """Split a T1 token into partner id, signature, and signed payload.

    WHY: Callers (and tests) need to inspect what a token grants without
    re-implementing the envelope format.

    RULES:
    - Raises DecodeError for anything that is not a well-formed T1 token
    - fields preserves blank values and the encoded order of the payload
    """
    if not token.startswith(TOKEN_PREFIX):
        raise DecodeError("session token does not start with {}".format(TOKEN_PREFIX))
    try:
        envelope = base64.b64decode(token[len(TOKEN_PREFIX):], validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise DecodeError("session token is not valid base64") from exc

    head, sep, payload = envelope.partition(":")
    partner, sig_sep, signature = head.partition("&sig=")
    if not sep or not sig_sep or not partner.startswith("partner_id="):
        raise DecodeError("session token envelope is malformed")

    return DecodedSessionToken(
        partner_id=partner[len("partner_id="):],
        signature=signature,
        payload=payload,
        fields=dict(parse_qsl(payload, keep_blank_values=True)),
    )


def verify_session_token(token: str, api_secret: str) -> bool:
    """Return True if the token's signature matches its payload under api_secret."""
    decoded = decode_session_token(token)
    expected = _hmac_sha1_hex(api_secret, decoded.payload)
    return hmac.compare_digest(expected, decoded.signature)


class TokenSigner:
    """Mints client session tokens and service bearer tokens for one project.

    WHY: Both token kinds need the same credentials and the same sources of
    time and randomness. Keeping them on one object lets the client share a
    single signer and lets tests swap every non-deterministic input.

    HOW: The clock returns epoch seconds (float), the RNG is any object with
    randrange (random.Random by default), and uuid_factory returns a string.

    RULES:
    - Stateless apart from the injected capabilities; safe to share across threads
      as long as the injected RNG is
    - jwt_ttl is the service-token lifetime in seconds; None reads
      TOKBOX_JWT_TTL_SECONDS (ConfigurationError if malformed)
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        jwt_ttl: Optional[int] = None,
        clock: Optional[Callable[[], float]] = None,
        rng: Optional[random.Random] = None,
        uuid_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        if jwt_ttl is None:
            jwt_ttl = load_jwt_ttl()
        if jwt_ttl <= 0:
            raise ValueError("jwt_ttl must be positive, got {}".format(jwt_ttl))
        self._credentials = credentials
        self._jwt_ttl = jwt_ttl
        self._clock = clock or time.time
        self._rng = rng or random.Random()
        self._uuid_factory = uuid_factory or (lambda: str(uuid.uuid4()))

    @property
    def api_key(self) -> str:
        return self._credentials.api_key

    def session_token(
        self,
        session_id: str,
        role: Union[Role, str, None] = None,
        connection_data: str = "",
        expire_in: int = 0,
    ) -> str:
        """Mint a T1 client token granting `role` in `session_id`.

        Args:
            session_id: The session the client may join.
            role: Role or its string value; None or "" omits the field.
            connection_data: Opaque metadata passed to other clients; "" omits it.
            expire_in: Seconds until expiry; 0 means no expire_time field.

        Returns:
            The token string, starting with "T1==".
        """
        if expire_in < 0:
            raise ValueError("expire_in must be >= 0, got {}".format(expire_in))
        if len(connection_data) > MAX_CONNECTION_DATA_CHARS:
            raise ValueError(
                "connection_data is {} characters; the limit is {}".format(
                    len(connection_data), MAX_CONNECTION_DATA_CHARS
                )
            )

        now = int(self._clock())
        pairs = [("session_id", session_id), ("create_time", str(now))]
        if expire_in > 0:
            pairs.append(("expire_time", str(now + expire_in)))
        if role:
            pairs.append(("role", Role(role).value))
        if connection_data:
            pairs.append(("connection_data", connection_data))
        pairs.append(("nonce", str(self._rng.randrange(NONCE_LIMIT))))

        payload = encode_token_data(pairs)
        signature = _hmac_sha1_hex(self._credentials.api_secret, payload)
        envelope = "partner_id={}&sig={}:{}".format(self._credentials.api_key, signature, payload)
        return TOKEN_PREFIX + base64.b64encode(envelope.encode("utf-8")).decode("ascii")

    def service_token(self) -> str:
        """Mint a fresh HS256 JWT for the X-OPENTOK-AUTH header."""
        now = int(self._clock())
        claims = {
            "iss": self._credentials.api_key,
            "ist": "project",
            "iat": now,
            "exp": now + self._jwt_ttl,
            "jti": self._uuid_factory(),
        }
        try:
            return jwt.encode(claims, self._credentials.api_secret, algorithm="HS256")
        except (jwt.PyJWTError, TypeError) as exc:
            raise SigningError("failed to sign service token") from exc
