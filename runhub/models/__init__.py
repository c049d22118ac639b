"""SQLAlchemy ORM models."""

from runhub.models.api_key import ApiKey
from runhub.models.deployment import Deployment
from runhub.models.machine import Machine
from runhub.models.run import WorkflowRun, WorkflowRunOutput
from runhub.models.workflow import Workflow, WorkflowVersion

__all__ = [
    "ApiKey",
    "Deployment",
    "Machine",
    "Workflow",
    "WorkflowVersion",
    "WorkflowRun",
    "WorkflowRunOutput",
]
