from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt

from kitchen.core import config


def decode_identity_token(token: str) -> Dict[str, Any]:
    """Verify a bearer token issued by the identity provider and return its claims."""
    options = {"verify_aud": config.AUTH_JWT_AUDIENCE is not None}
    return jwt.decode(
        token,
        config.AUTH_JWT_SECRET,
        algorithms=[config.AUTH_JWT_ALGORITHM],
        audience=config.AUTH_JWT_AUDIENCE,
        issuer=config.AUTH_JWT_ISSUER,
        options=options,
    )


def create_identity_token(
    uid: str,
    email: Optional[str] = None,
    expires_minutes: int = 60,
    secret: Optional[str] = None,
) -> str:
    # local tooling and tests only; production tokens come from the provider
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {"sub": uid, "iat": now, "exp": now + timedelta(minutes=expires_minutes)}
    if email:
        payload["email"] = email
    if config.AUTH_JWT_AUDIENCE:
        payload["aud"] = config.AUTH_JWT_AUDIENCE
    if config.AUTH_JWT_ISSUER:
        payload["iss"] = config.AUTH_JWT_ISSUER
    return jwt.encode(payload, secret or config.AUTH_JWT_SECRET, algorithm=config.AUTH_JWT_ALGORITHM)
