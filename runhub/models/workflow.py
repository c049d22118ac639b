"""Workflow and workflow version models."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, UniqueConstraint

from runhub.database import Base, JSONVariant


class Workflow(Base):
    """Workflow owned by either an organization or a user."""

    __tablename__ = "workflows"

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(Text, nullable=False)
    user_id = Column(Text, nullable=False)
    org_id = Column(Text)  # Set for org-owned workflows
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class WorkflowVersion(Base):
    """Immutable snapshot of a workflow graph, created once per publish."""

    __tablename__ = "workflow_versions"

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    workflow_id = Column(Text, ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False)
    version = Column(Integer, nullable=False)
    workflow = Column(JSONVariant)  # Editor graph
    workflow_api = Column(JSONVariant, nullable=False)  # Executable payload sent to machines
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (UniqueConstraint("workflow_id", "version"),)
