"""
HMAC-SHA256 bearer token codec.

Tokens are HS256 JWTs encoded and verified with PyJWT. The codec owns a
single process-wide secret and performs no key lookup: the header ``kid``
is informational. Expiry is checked against the codec's own clock with a
5 second buffer for skew between issuer and validator.
"""

from __future__ import annotations

import binascii
import time
import uuid
from typing import Any, Callable, Dict, Mapping, Optional

import jwt
from jwt.utils import base64url_decode, base64url_encode

from shared.errors import (
    AuthenticationError,
    BadSignatureError,
    ConfigurationError,
    InvalidArgumentError,
    MalformedTokenError,
    TokenExpiredError,
)
from shared.logging import get_logger

TOKEN_PREFIX = "Bearer "
ALGORITHM = "HS256"
ISSUED_AT_CLAIM = "iat"
EXPIRES_AT_CLAIM = "exp"
RESERVED_CLAIMS = frozenset({ISSUED_AT_CLAIM, EXPIRES_AT_CLAIM})
EXPIRATION_BUFFER_MS = 5000

# Signature and structure are checked by PyJWT; expiry uses the codec clock.
# Caller claims are opaque, so registered-claim checks are off.
DECODE_OPTIONS = {
    "require": [EXPIRES_AT_CLAIM],
    "verify_exp": False,
    "verify_iat": False,
    "verify_nbf": False,
    "verify_aud": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
}


class TokenClaims(dict):
    """Caller claims of a validated token.

    Behaves as a plain mapping of the caller-supplied claims; the reserved
    timestamps are exposed as attributes only.
    """

    def __init__(self, claims: Mapping[str, Any], *, issued_at: Optional[int] = None,
                 expires_at: Optional[int] = None) -> None:
        super().__init__(claims)
        self.issued_at = issued_at
        self.expires_at = expires_at


def _is_canonical_segment(segment: str) -> bool:
    # Non-alphabet characters and stray trailing bits decode to the same bytes
    try:
        return base64url_encode(base64url_decode(segment)).decode("ascii") == segment
    except (binascii.Error, ValueError):
        return False


class TokenCodec:
    """Issue and validate HMAC-signed bearer tokens."""

    def __init__(self, secret_key: Optional[str], *, clock: Callable[[], float] = time.time) -> None:
        if secret_key is None or not secret_key.strip():
            raise ConfigurationError("JWT secret key is not configured")
        self._secret = secret_key.strip()
        self._clock = clock
        self.logger = get_logger("enterprise-auth.token_codec")

    @classmethod
    def from_config(cls, config) -> "TokenCodec":
        return cls(config.jwt_secret)

    def issue(self, claims: Optional[Mapping[str, Any]], ttl_seconds: int) -> str:
        """Create a signed token carrying ``claims`` that expires after ``ttl_seconds``."""
        if not claims:
            raise InvalidArgumentError("Claims cannot be empty")
        if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int) or ttl_seconds <= 0:
            raise InvalidArgumentError("Expiration time must be positive")
        reserved = RESERVED_CLAIMS.intersection(claims)
        if reserved:
            raise InvalidArgumentError(
                "Reserved claim names cannot be supplied",
                details={"claims": sorted(reserved)}
            )

        now = int(self._clock())
        payload: Dict[str, Any] = dict(claims)
        payload[ISSUED_AT_CLAIM] = now
        payload[EXPIRES_AT_CLAIM] = now + ttl_seconds

        return jwt.encode(payload, self._secret, algorithm=ALGORITHM, headers={"kid": str(uuid.uuid4())})

    def validate(self, token: Optional[str]) -> TokenClaims:
        """Validate ``token`` and return its caller claims.

        Raises MalformedTokenError, BadSignatureError or TokenExpiredError.
        """
        if not isinstance(token, str):
            raise MalformedTokenError("Token is missing")

        if token.startswith(TOKEN_PREFIX):
            token = token[len(TOKEN_PREFIX):]
        token = token.strip()

        parts = token.split(".")
        if len(parts) != 3 or not all(parts):
            raise MalformedTokenError("Token must have three non-empty segments")
        if not _is_canonical_segment(parts[2]):
            raise BadSignatureError()

        try:
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM], options=DECODE_OPTIONS)
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError):
            raise BadSignatureError()
        except jwt.MissingRequiredClaimError:
            raise TokenExpiredError("Token has no expiry")
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError("Token could not be decoded", details={"error": str(e)})

        expires_at = payload.pop(EXPIRES_AT_CLAIM)
        issued_at = payload.pop(ISSUED_AT_CLAIM, None)
        if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
            raise TokenExpiredError("Token has no expiry")
        if int(expires_at) * 1000 + EXPIRATION_BUFFER_MS < int(self._clock() * 1000):
            raise TokenExpiredError()

        return TokenClaims(
            payload,
            issued_at=int(issued_at) if isinstance(issued_at, (int, float)) else None,
            expires_at=int(expires_at),
        )

    def is_valid(self, token: Optional[str]) -> bool:
        try:
            self.validate(token)
        except AuthenticationError as e:
            self.logger.debug("Token validation failed", code=e.code)
            return False
        return True
