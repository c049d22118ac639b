"""API key model backing the revocation list."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Text

from runhub.database import Base


class ApiKey(Base):
    """Issued API key. Revoked keys are rejected even if their JWT is still valid."""

    __tablename__ = "api_keys"

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    key = Column(Text, nullable=False, unique=True)
    name = Column(Text)
    user_id = Column(Text, nullable=False)
    org_id = Column(Text)
    revoked = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
