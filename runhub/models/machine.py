"""Machine model."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Text

from runhub.database import Base


class Machine(Base):
    """A remote compute endpoint that executes workflow versions."""

    __tablename__ = "machines"

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(Text, nullable=False)
    endpoint = Column(Text, nullable=False)  # Base URL, e.g. https://gpu-1.example.com
    user_id = Column(Text, nullable=False)
    org_id = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
