"""
Session guard.
Resolves the identity provider's bearer token into an explicit SessionContext
that every report operation receives.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

logger = logging.getLogger(__name__)

AUTH_SECRET_KEY = os.getenv("AUTH_SECRET_KEY")
AUTH_ALGORITHM = os.getenv("AUTH_ALGORITHM", "HS256")

security = HTTPBearer(auto_error=False)


class NotAuthenticatedError(Exception):
    """Raised when an operation needs a signed-in user and there is none."""


@dataclass(frozen=True)
class SessionContext:
    """Identity of the caller for the lifetime of one request."""
    user_id: str
    email: Optional[str] = None


def require_user_id(session: Optional[SessionContext]) -> str:
    """
    Return the caller's user id or fail.

    Raises:
        NotAuthenticatedError: If there is no session or it carries no user id
    """
    if session is None or not session.user_id:
        raise NotAuthenticatedError("User not logged in")
    return session.user_id


def decode_session_token(token: str) -> SessionContext:
    """
    Decode a bearer token into a SessionContext.

    The user id is read from the `uid` claim, falling back to `sub`.

    Raises:
        ValueError: If AUTH_SECRET_KEY is not configured
        jwt.InvalidTokenError: If the token cannot be verified or has no user id
    """
    if not AUTH_SECRET_KEY:
        raise ValueError("AUTH_SECRET_KEY environment variable is not set")

    payload = jwt.decode(token, AUTH_SECRET_KEY, algorithms=[AUTH_ALGORITHM])
    user_id = payload.get("uid") or payload.get("sub")
    if not user_id:
        raise jwt.InvalidTokenError("Token has no user id")
    return SessionContext(user_id=str(user_id), email=payload.get("email"))


def get_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[SessionContext]:
    """Dependency: the caller's session, or None when no token was sent."""
    if credentials is None:
        return None

    try:
        return decode_session_token(credentials.credentials)
    except ValueError as e:
        logger.error("Authentication is not configured: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Authentication is not configured",
        ) from e
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_session(session: Optional[SessionContext] = Depends(get_session)) -> SessionContext:
    """Dependency: gates a route behind a signed-in user."""
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session
