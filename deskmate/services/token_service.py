"""
Deskmate Backend — Session Token Service
==========================================

What:  Issues and verifies signed, time-bounded session tokens (JWT, HMAC).
How:   python-jose signs a Claim that embeds a snapshot of the account.
       Verification is a pure function of the token, the clock and the
       signing secret: no revocation list, no database lookup.
Who:   Built once by the app factory and stored on `app.state`; used by the
       account routes (issue) and the auth gate (verify).

Verification order:
    1. Missing      → TokenMissingError
    2. Structure    → TokenMalformedError
    3. Signature    → TokenSignatureInvalidError
                      (also any segment that is not canonical base64url)
    4. Expiry       → TokenExpiredError
    5. Claim shape  → TokenMalformedError

The signature is checked before the expiry, so a forged token is never
reported as merely expired.

"Structure" means three non-empty segments of base64url characters. Anything
that passes that check and is then altered in any position, header included,
fails as TokenSignatureInvalidError. The last character of a segment can
carry padding bits the decoder ignores, so each segment must also re-encode
to exactly itself.
"""

import logging
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from jose import ExpiredSignatureError, JWTError, jws, jwt
from jose.exceptions import JWSError
from jose.utils import base64url_decode, base64url_encode
from pydantic import ValidationError as PydanticValidationError

from deskmate.exceptions import (
    TokenExpiredError,
    TokenMalformedError,
    TokenMissingError,
    TokenSignatureInvalidError,
)
from deskmate.models.account import Account
from deskmate.schemas.token import AccountSnapshot, Claim

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL = timedelta(days=20)

_SEGMENT = re.compile(r"[A-Za-z0-9_-]+")


def split_segments(token: str) -> List[str]:
    """
    The three JWS segments of a compact token.

    Raises:
        TokenMalformedError: not three non-empty base64url segments
    """
    segments = token.split(".")
    if len(segments) != 3 or not all(_SEGMENT.fullmatch(s) for s in segments):
        raise TokenMalformedError(context={"detail": "not a compact JWS"})
    return segments


def is_canonical(segment: str) -> bool:
    """True if the segment re-encodes to exactly itself."""
    raw = segment.encode("ascii")
    try:
        return base64url_encode(base64url_decode(raw)) == raw
    except ValueError:
        return False


class TokenService:
    """
    Signs and verifies session tokens with a single process-wide secret.

    The secret is fixed for the lifetime of the instance. Replacing it (a new
    instance with another key) makes every token issued under the old key
    fail with TokenSignatureInvalidError.
    """

    def __init__(
        self,
        secret_key: str,
        ttl: timedelta = DEFAULT_TOKEN_TTL,
        algorithm: str = "HS256",
    ):
        if not secret_key:
            raise ValueError("TokenService requires a non-empty secret key")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.ttl = ttl

    def issue(self, account: Account, now: Optional[datetime] = None) -> str:
        """
        Sign a new token for an account.

        Args:
            account: Account row (or anything with the same attributes)
            now:     Issuance instant; defaults to the current UTC time

        Returns:
            Compact JWT string. Expires at now + ttl.
        """
        issued_at = now or datetime.now(timezone.utc)
        snapshot = AccountSnapshot.model_validate(account)
        claim = Claim(
            user=snapshot,
            sub=str(snapshot.id),
            jti=uuid.uuid4().hex,
            iat=int(issued_at.timestamp()),
            exp=int((issued_at + self.ttl).timestamp()),
        )
        token = jwt.encode(
            claim.model_dump(mode="json"),
            self._secret_key,
            algorithm=self._algorithm,
        )
        logger.debug("Issued session token %s for account %s", claim.jti, snapshot.id)
        return token

    def verify(self, token: Optional[str]) -> Claim:
        """
        Verify a token and return its Claim.

        Raises:
            TokenMissingError:          token is None or empty
            TokenMalformedError:        not three base64url segments, or payload is not a Claim
            TokenSignatureInvalidError: signed with another key, or altered
            TokenExpiredError:          valid signature, expiry has passed
        """
        if not token:
            raise TokenMissingError()

        segments = split_segments(token)
        if not all(is_canonical(s) for s in segments):
            raise TokenSignatureInvalidError(context={"detail": "non-canonical segment"})

        # Well-formed from here on: an undecodable header, a wrong key, altered
        # content or an algorithm we do not accept all fail the signature
        try:
            jws.verify(token, self._secret_key, algorithms=[self._algorithm])
        except JWSError as e:
            raise TokenSignatureInvalidError(context={"detail": str(e)}) from e

        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except ExpiredSignatureError as e:
            raise TokenExpiredError() from e
        except JWTError as e:
            raise TokenMalformedError(context={"detail": str(e)}) from e

        try:
            return Claim.model_validate(payload)
        except PydanticValidationError as e:
            raise TokenMalformedError(context={"detail": "payload is not a session claim"}) from e
