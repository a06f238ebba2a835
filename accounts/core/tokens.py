"""
Identity tokens: stateless HS256 JWTs carrying a single subject id.

Only the subject id leaves this module; registered claims are stripped
during verification so they cannot leak into downstream objects.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import logging
import uuid

from jose import JWTError, jwt

from accounts.core.config import settings
import accounts.core.logging_config  # noqa: F401 - registers Logger.trace

logger = logging.getLogger(__name__)

# Claims added by the issuer, never part of the identity itself.
REGISTERED_CLAIMS = ("iat", "exp", "jti")


class TokenInvalid(Exception):
    """Signature mismatch, malformed token, missing subject, or expiry."""


def issue_token(subject_id: str, ttl: Optional[timedelta] = None) -> str:
    """Sign a token for *subject_id*, valid for *ttl* (default from settings)."""
    if ttl is None:
        ttl = timedelta(hours=settings.TOKEN_EXPIRE_HOURS)
    now = datetime.now(tz=timezone.utc)
    payload: dict[str, Any] = {
        "id": subject_id,
        "iat": now,
        "exp": now + ttl,
        # nonce: two tokens for one subject in the same second still differ
        "jti": uuid.uuid4().hex,
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    logger.info("Issued token for subject=%s", subject_id)
    return token


def decode_claims(token: str) -> dict[str, Any]:
    """
    Decode and verify a token, returning its claims minus the registered ones.

    Raises:
        TokenInvalid: if the signature does not match or the token expired.
    """
    logger.trace("Decoding identity token")
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as exc:
        logger.warning("Token verification failed: %s", exc)
        raise TokenInvalid(str(exc)) from exc
    return {k: v for k, v in payload.items() if k not in REGISTERED_CLAIMS}


def verify_token(token: str) -> str:
    """Return the subject id of a valid token or raise TokenInvalid."""
    if not isinstance(token, str) or not token:
        raise TokenInvalid("Token must be a non-empty string")
    claims = decode_claims(token)
    subject_id = claims.get("id")
    if not isinstance(subject_id, str) or not subject_id:
        logger.warning("Token is missing its subject claim")
        raise TokenInvalid("Token has no subject")
    return subject_id
