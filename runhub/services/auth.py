"""Bearer credential validation and revocation checks."""

import logging
from dataclasses import dataclass
from typing import Optional

import jwt
from sqlalchemy import select
from sqlalchemy.orm import Session

from runhub.config import settings
from runhub.exceptions import RevokedTokenError, UnauthorizedError
from runhub.models.api_key import ApiKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    """Identity derived from a validated credential.

    Org-scoped credentials authorize on ``org_id``; user-scoped ones on
    ``user_id``. The two are never combined.
    """

    user_id: str
    org_id: Optional[str] = None

    @property
    def is_org_scoped(self) -> bool:
        return self.org_id is not None

    def owns(self, org_id: Optional[str], user_id: str) -> bool:
        """Whether a record scoped to (org_id, user_id) is visible to this caller."""
        if self.is_org_scoped:
            return org_id == self.org_id
        return user_id == self.user_id


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from a ``Bearer <token>`` header value, if well-formed."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def parse_token(token: str) -> AuthContext:
    """Decode and verify a JWT, raising UnauthorizedError if it is unusable."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError as exc:
        raise UnauthorizedError("Invalid or expired token") from exc

    user_id = payload.get("user_id")
    if not user_id:
        raise UnauthorizedError("Invalid or expired token")
    return AuthContext(user_id=user_id, org_id=payload.get("org_id") or None)


def is_key_revoked(db: Session, token: str) -> bool:
    """Check the api_keys table for a revoked entry matching the token."""
    key = db.execute(select(ApiKey).where(ApiKey.key == token)).scalar_one_or_none()
    return key is not None and key.revoked


class TokenValidator:
    """Turns an Authorization header into an AuthContext."""

    def __init__(self, db: Session):
        self.db = db

    def validate(self, authorization: Optional[str]) -> AuthContext:
        """
        Validate a bearer credential.

        Args:
            authorization: Raw Authorization header value

        Returns:
            AuthContext for the caller

        Raises:
            UnauthorizedError: Header missing or token malformed/expired
            RevokedTokenError: Token is on the revocation list
        """
        token = extract_bearer_token(authorization)
        if token is None:
            raise UnauthorizedError("Invalid or expired token")

        context = parse_token(token)

        if is_key_revoked(self.db, token):
            logger.warning(f"Rejected revoked token for user {context.user_id}")
            raise RevokedTokenError("Revoked token")

        return context
