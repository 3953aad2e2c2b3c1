"""
Signed session tokens.

A token is ``<base64url(json payload)>.<base64url(hmac-sha256)>`` where the
payload carries the subject slug, role, expiry (epoch milliseconds) and a
random nonce.
"""
import enum
import hashlib
import json
import logging
import os
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from itsdangerous import BadData, Signer
from itsdangerous.encoding import base64_decode, base64_encode

from .errors import VALIDATION_ERRORS, SessionConfigError

logger = logging.getLogger(__name__)

SESSION_COOKIE = "baseline_session"
SESSION_MAX_AGE_SECONDS = 60 * 60 * 24
SESSION_SALT = "baseline.session"


class SessionRole(enum.Enum):
    INVESTOR = "investor"
    ADMIN = "admin"
    DECK = "deck"

    @classmethod
    def parse(cls, value: Any) -> Optional["SessionRole"]:
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass
class SessionPayload:
    slug: str
    role: SessionRole
    exp: int
    nonce: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["role"] = self.role.value
        return data


def _now_ms() -> int:
    return int(time.time() * 1000)


def _signer(secret: str) -> Signer:
    if not secret:
        raise SessionConfigError(VALIDATION_ERRORS["SESSION_SECRET_MISSING"])
    return Signer(
        secret,
        salt=SESSION_SALT,
        sep=".",
        key_derivation="hmac",
        digest_method=hashlib.sha256,
    )


def create_session_token(slug: str, role: SessionRole, secret: str, max_age: int = SESSION_MAX_AGE_SECONDS) -> str:
    signer = _signer(secret)
    payload = SessionPayload(
        slug=slug,
        role=role,
        exp=_now_ms() + max_age * 1000,
        nonce=os.urandom(16).hex(),
    )
    encoded = base64_encode(json.dumps(payload.to_dict(), separators=(",", ":")))
    return signer.sign(encoded).decode("ascii")


def verify_session_token(token: str, secret: str) -> Optional[SessionPayload]:
    """Return the payload of a valid, unexpired token, else None."""
    if not token:
        return None
    try:
        encoded = _signer(secret).unsign(token)
        data = json.loads(base64_decode(encoded))
        role = SessionRole.parse(data.get("role"))
        if role is None:
            return None
        payload = SessionPayload(
            slug=str(data["slug"]),
            role=role,
            exp=int(data["exp"]),
            nonce=str(data.get("nonce") or ""),
        )
    except BadData:
        return None
    except (SessionConfigError, ValueError, KeyError, TypeError, AttributeError) as e:
        logger.error("Session verification failed: %s", e)
        return None

    if payload.exp < _now_ms():
        return None
    return payload
