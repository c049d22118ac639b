"""Workflow run and run output models."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Text, UniqueConstraint

from runhub.database import Base, JSONVariant


class WorkflowRun(Base):
    """One execution of a workflow version on a machine.

    The id is assigned by the machine when it acknowledges the dispatch.
    """

    __tablename__ = "workflow_runs"

    id = Column(Text, primary_key=True)
    workflow_id = Column(Text, ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False)
    workflow_version_id = Column(Text, ForeignKey("workflow_versions.id"), nullable=False)
    machine_id = Column(Text, ForeignKey("machines.id"), nullable=False)
    status = Column(Text, nullable=False)  # 'queued', 'running', 'success', 'failed'
    workflow_inputs = Column(JSONVariant)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    ended_at = Column(DateTime)

    __table_args__ = (
        Index("idx_workflow_runs_workflow_id", "workflow_id"),
        Index("idx_workflow_runs_status", "status"),
    )


class WorkflowRunOutput(Base):
    """One unit of result data reported for a run, kept in arrival order."""

    __tablename__ = "workflow_run_outputs"

    output_pk = Column(Integer, primary_key=True, autoincrement=True)
    run_id = Column(Text, ForeignKey("workflow_runs.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)
    data = Column(JSONVariant, nullable=False)  # {'images': [...]} or {'files': [...]}
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (UniqueConstraint("run_id", "position"),)
