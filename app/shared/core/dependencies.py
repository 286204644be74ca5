"""
Common FastAPI dependencies shared by both services.
Provides caller authentication, role checks and service-to-service authorization.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config.settings import get_settings
from .exceptions import AuthenticationError, AuthorizationError
from .security import ROLE_ADMIN, TokenClaims, constant_time_equals, get_security_manager

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation; missing headers are reported as 401 by us
security = HTTPBearer(auto_error=False)


class CurrentUser:
    """User information extracted from a verified JWT token."""

    def __init__(
        self,
        user_id: UUID,
        email: Optional[str],
        role: str,
        email_confirmed: bool,
        token: str
    ):
        self.user_id = user_id
        self.email = email
        self.role = role
        self.email_confirmed = email_confirmed
        # raw bearer token, forwarded unchanged on calls to the user service
        self.token = token

    @classmethod
    def from_claims(cls, claims: TokenClaims, token: str) -> "CurrentUser":
        try:
            user_id = UUID(claims.user_id)
        except ValueError:
            raise AuthenticationError("Invalid authentication credentials")
        return cls(
            user_id=user_id,
            email=claims.email,
            role=claims.role,
            email_confirmed=claims.email_confirmed,
            token=token,
        )

    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def can_access(self, user_id: UUID) -> bool:
        """Self or admin."""
        return self.user_id == user_id or self.is_admin()


class ServiceCaller:
    """A trusted internal caller authenticated by the shared API key."""

    is_service = True

    def __repr__(self) -> str:
        return "ServiceCaller()"


def _authenticate(credentials: Optional[HTTPAuthorizationCredentials]) -> CurrentUser:
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise AuthenticationError("Authentication required")
    claims = get_security_manager().verify_token(credentials.credentials)
    return CurrentUser.from_claims(claims, credentials.credentials)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """
    Resolve the calling user from the Authorization header.

    Args:
        request: FastAPI request object
        credentials: Bearer credentials parsed by HTTPBearer

    Returns:
        CurrentUser: Current user information

    Raises:
        AuthenticationError: If the header is missing or the token is invalid
    """
    current_user = _authenticate(credentials)
    request.state.user_id = str(current_user.user_id)
    return current_user


async def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """
    Require the Admin role.

    Raises:
        AuthorizationError: If the caller is not an admin
    """
    if not current_user.is_admin():
        logger.warning(f"Non-admin user {current_user.user_id} attempted an admin operation")
        raise AuthorizationError("Admin role required")
    return current_user


async def get_service_caller_or_user(
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
):
    """
    Accept either the shared service API key or an authenticated user.

    Returns:
        ServiceCaller | CurrentUser

    Raises:
        AuthenticationError: If neither credential is valid
    """
    settings = get_settings()
    if x_api_key is not None:
        if settings.SERVICE_API_KEY and constant_time_equals(x_api_key, settings.SERVICE_API_KEY):
            return ServiceCaller()
        logger.warning("Rejected service call with an invalid API key")
        raise AuthenticationError("Invalid API key")
    return _authenticate(credentials)
