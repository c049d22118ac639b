"""Deployment model."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Text

from runhub.database import Base


class Deployment(Base):
    """Binding of a workflow version to a machine, the unit callers submit."""

    __tablename__ = "deployments"

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Text, nullable=False)
    org_id = Column(Text)
    workflow_id = Column(Text, ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False)
    workflow_version_id = Column(Text, ForeignKey("workflow_versions.id"), nullable=False)
    machine_id = Column(Text, ForeignKey("machines.id"), nullable=False)
    environment = Column(Text, default="production")
    created_at = Column(DateTime, default=datetime.utcnow)
