"""
Security utilities for JWT issuing and validation, password hashing and
single-use token generation.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from ..config.settings import get_settings
from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)

ROLE_USER = "User"
ROLE_ADMIN = "Admin"


@lru_cache()
def get_password_context() -> CryptContext:
    """Password hashing context (bcrypt, rounds from settings)."""
    settings = get_settings()
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=settings.BCRYPT_ROUNDS,
    )


def hash_password(password: str) -> str:
    return get_password_context().hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Check a password against a stored hash. Malformed hashes never verify."""
    try:
        return get_password_context().verify(plain_password, password_hash)
    except (ValueError, TypeError) as e:
        logger.warning(f"Password verification failed on malformed hash: {e}")
        return False


def generate_secure_token(nbytes: int = 32) -> str:
    """URL-safe random token for email confirmation and password reset."""
    return secrets.token_urlsafe(nbytes)


def constant_time_equals(left: str, right: str) -> bool:
    return secrets.compare_digest(left.encode("utf-8"), right.encode("utf-8"))


@dataclass(frozen=True)
class TokenClaims:
    """Claims extracted from a verified access token."""

    user_id: str
    email: Optional[str]
    role: str
    email_confirmed: bool
    expires_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


class SecurityManager:
    """
    Issues and validates access tokens for both services.
    The user service signs; the product service only verifies.
    """

    def __init__(self):
        self.settings = get_settings()
        self.algorithm = self.settings.JWT_ALGORITHM
        self.secret_key = self.settings.JWT_SECRET_KEY
        self.issuer = self.settings.JWT_ISSUER
        self.audience = self.settings.JWT_AUDIENCE
        self.access_token_expire_minutes = self.settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES

    def create_access_token(
        self,
        subject: str,
        claims: Optional[Dict[str, Any]] = None,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create JWT access token.

        Args:
            subject: User id placed in the `sub` claim
            claims: Extra claims (email, role, email_confirmed)
            expires_delta: Custom expiration time

        Returns:
            str: Encoded JWT token
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.access_token_expire_minutes))

        to_encode = dict(claims or {})
        to_encode.update({
            "sub": str(subject),
            "iss": self.issuer,
            "aud": self.audience,
            "iat": now,
            "exp": expire,
            "type": "access",
        })

        token = jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)
        logger.debug(f"Access token created for user: {subject}")
        return token

    def verify_token(self, token: str) -> TokenClaims:
        """
        Verify JWT token and extract its claims.

        Args:
            token: Encoded JWT token

        Returns:
            TokenClaims: Verified claims

        Raises:
            AuthenticationError: If the token is expired, malformed or has no subject
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except JWTError as e:
            logger.warning(f"Token verification failed: {e}")
            raise AuthenticationError("Invalid authentication credentials")

        if payload.get("type") != "access" or not payload.get("sub"):
            raise AuthenticationError("Invalid authentication credentials")

        exp = payload.get("exp")
        return TokenClaims(
            user_id=payload["sub"],
            email=payload.get("email"),
            role=payload.get("role", ROLE_USER),
            email_confirmed=bool(payload.get("email_confirmed", False)),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None,
        )


@lru_cache()
def get_security_manager() -> SecurityManager:
    return SecurityManager()
