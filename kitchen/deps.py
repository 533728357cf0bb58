from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from kitchen.core import config
from kitchen.core.request_context import set_request_context
from kitchen.services.auth import decode_identity_token

bearer_scheme = HTTPBearer(auto_error=False)

logger = logging.getLogger(__name__)

SYSTEM_UID = "system"


@dataclass(frozen=True)
class Principal:
    uid: str
    email: Optional[str] = None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    """Resolve the caller from the identity provider's bearer token."""
    if config.AUTH_DISABLED:
        principal = Principal(uid=SYSTEM_UID)
    else:
        if credentials is None or not credentials.credentials:
            raise _unauthorized("Not authenticated")
        if not config.AUTH_JWT_SECRET:
            logger.error("bearer token received but AUTH_JWT_SECRET is not configured")
            raise _unauthorized("Authentication is not configured")
        try:
            claims = decode_identity_token(credentials.credentials)
        except JWTError:
            raise _unauthorized("Invalid or expired token")

        uid = claims.get("sub") or claims.get("uid") or claims.get("user_id")
        if not uid:
            raise _unauthorized("Token has no subject")
        principal = Principal(uid=str(uid), email=claims.get("email"))

    request.state.principal = principal
    set_request_context(user_id=principal.uid)
    return principal
