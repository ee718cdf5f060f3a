from datetime import datetime, timedelta
from typing import Optional

import jwt
from jwt.exceptions import InvalidTokenError

from custody.core.config import settings


ALGORITHM = "HS256"


def create_caller_token(principal: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Signs an identity assertion for `principal`.
    The hosting environment mints these; the ledger only verifies them.
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.caller_token_expire_minutes)

    to_encode = {
        "sub": principal,
        "exp": datetime.utcnow() + expires_delta,
        "type": "caller"
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_caller_token(token: str) -> str:
    """Returns the caller principal, or raises InvalidTokenError."""
    payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])

    if payload.get("type") != "caller":
        raise InvalidTokenError("Not a caller token.")

    principal = payload.get("sub")
    if not principal:
        raise InvalidTokenError("Token has no subject.")

    return principal
