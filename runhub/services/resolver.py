"""Deployment, machine and workflow-version lookups.

Each resolver returns plain value objects so callers never touch ORM rows
or depend on lazy relationship loading.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from runhub.exceptions import DeploymentNotFound, MachineNotFound, WorkflowVersionNotFound
from runhub.models.deployment import Deployment
from runhub.models.machine import Machine
from runhub.models.workflow import Workflow, WorkflowVersion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MachineInfo:
    id: str
    endpoint: str


@dataclass(frozen=True)
class WorkflowScope:
    """Owner of a workflow: an org, or a user when org_id is None."""

    user_id: str
    org_id: Optional[str] = None


@dataclass(frozen=True)
class WorkflowVersionInfo:
    id: str
    workflow_id: str
    version: int
    workflow_api: Dict[str, Any]


@dataclass(frozen=True)
class ResolvedDeployment:
    deployment_id: str
    machine: MachineInfo
    version: WorkflowVersionInfo
    scope: WorkflowScope


def resolve_deployment(db: Session, deployment_id: str) -> ResolvedDeployment:
    """
    Load a deployment joined with its machine, version and workflow scope.

    Args:
        db: Database session
        deployment_id: Deployment to resolve

    Returns:
        Fully populated ResolvedDeployment

    Raises:
        DeploymentNotFound: If the deployment or any joined record is missing
    """
    row = db.execute(
        select(Deployment.id, Machine, WorkflowVersion, Workflow.user_id, Workflow.org_id)
        .join(Machine, Machine.id == Deployment.machine_id)
        .join(WorkflowVersion, WorkflowVersion.id == Deployment.workflow_version_id)
        .join(Workflow, Workflow.id == WorkflowVersion.workflow_id)
        .where(Deployment.id == deployment_id)
    ).first()

    if row is None:
        raise DeploymentNotFound("Deployment not found", deployment_id=deployment_id)

    _, machine, version, user_id, org_id = row
    logger.debug(f"Resolved deployment {deployment_id} -> machine {machine.id}, version {version.id}")
    return ResolvedDeployment(
        deployment_id=deployment_id,
        machine=_machine_info(machine),
        version=_version_info(version),
        scope=WorkflowScope(user_id=user_id, org_id=org_id),
    )


def resolve_machine(db: Session, machine_id: str) -> MachineInfo:
    """Look up a machine by id."""
    machine = db.get(Machine, machine_id)
    if machine is None:
        raise MachineNotFound("Machine not found", machine_id=machine_id)
    return _machine_info(machine)


def resolve_version(db: Session, workflow_version_id: str) -> WorkflowVersionInfo:
    """Look up a workflow version by id."""
    version = db.get(WorkflowVersion, workflow_version_id)
    if version is None:
        raise WorkflowVersionNotFound("Workflow version not found", workflow_version_id=workflow_version_id)
    return _version_info(version)


def _machine_info(machine: Machine) -> MachineInfo:
    return MachineInfo(id=machine.id, endpoint=machine.endpoint)


def _version_info(version: WorkflowVersion) -> WorkflowVersionInfo:
    return WorkflowVersionInfo(
        id=version.id,
        workflow_id=version.workflow_id,
        version=version.version,
        workflow_api=dict(version.workflow_api or {}),
    )
