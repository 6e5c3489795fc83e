"""Admin authentication.

A single shared secret guards the admin surface: the password is exchanged
for the configured admin token at login, and every admin route expects that
token as a Bearer credential.
"""

import hmac
import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import get_settings
from ..exceptions import UnauthorizedError


logger = logging.getLogger(__name__)

# Security scheme for Bearer token authentication
security = HTTPBearer(auto_error=False)


def _matches(supplied: str, expected: str) -> bool:
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def verify_password(password: str) -> bool:
    """Check a password against ADMIN_PASSWORD. Always False when unset."""
    expected = get_settings().admin_password
    if not expected:
        logger.error("ADMIN_PASSWORD is not configured")
        return False
    return _matches(password, expected)


def verify_token(token: str) -> bool:
    """Check a token against ADMIN_TOKEN. Always False when unset."""
    expected = get_settings().admin_token
    if not expected:
        logger.error("ADMIN_TOKEN is not configured")
        return False
    return _matches(token, expected)


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> None:
    """FastAPI dependency that rejects requests without a valid admin token.

    Raises:
        UnauthorizedError (401): If the header is missing or the token is wrong.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError()
    if not verify_token(credentials.credentials):
        raise UnauthorizedError()
