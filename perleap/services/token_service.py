"""Bearer token validation (HS256).

Access tokens are issued by the hosted identity provider and signed with the
project's shared JWT secret. This service only verifies them; the minting
helper exists for local development and the test suite.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt

from perleap.core.config import SETTINGS

ALGORITHM = "HS256"
DEV_TOKEN_TTL_MIN = 60


def create_access_token(
    *,
    sub: str,
    email: str | None = None,
    ttl: timedelta = timedelta(minutes=DEV_TOKEN_TTL_MIN),
) -> str:
    """Sign a token shaped like the identity provider's access tokens."""
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "aud": SETTINGS.jwt_audience,
        "exp": now + ttl,
        "iat": now,
        "jti": str(uuid.uuid4()),
        "role": "authenticated",
    }
    if email is not None:
        payload["email"] = email
    return jwt.encode(payload, SETTINGS.jwt_secret, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature, expiry and audience; return the claims.

    The algorithm is pinned to HS256 so alg:none and alg-switching tokens
    are rejected.

    Raises jwt.ExpiredSignatureError, jwt.InvalidTokenError on failure.
    """
    return jwt.decode(
        token,
        SETTINGS.jwt_secret,
        algorithms=[ALGORITHM],
        audience=SETTINGS.jwt_audience,
        options={"require": ["sub", "exp"]},
    )
