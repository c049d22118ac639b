"""Persistence and lifecycle transitions for workflow runs."""

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from runhub.exceptions import ConflictError, InvalidTransitionError, RunNotFound
from runhub.models.run import WorkflowRun, WorkflowRunOutput

logger = logging.getLogger(__name__)

QUEUED = "queued"
RUNNING = "running"
SUCCESS = "success"
FAILED = "failed"

TERMINAL_STATUSES = frozenset({SUCCESS, FAILED})

# Same-status edges on non-terminal runs only append outputs
ALLOWED_TRANSITIONS: Dict[str, frozenset] = {
    QUEUED: frozenset({QUEUED, RUNNING, FAILED}),
    RUNNING: frozenset({RUNNING, SUCCESS, FAILED}),
    SUCCESS: frozenset(),
    FAILED: frozenset(),
}


@dataclass(frozen=True)
class StoredOutput:
    data: Dict[str, Any]
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class RunRecord:
    """Snapshot of a run and its outputs as committed."""

    id: str
    workflow_id: str
    workflow_version_id: str
    machine_id: str
    status: str
    workflow_inputs: Optional[Dict[str, str]] = None
    outputs: Tuple[StoredOutput, ...] = field(default_factory=tuple)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


def can_transition(current: str, new: str) -> bool:
    """Whether ``current -> new`` is an edge of the run lifecycle."""
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


class RunStore:
    """Single source of truth for run state."""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        run_id: str,
        workflow_id: str,
        workflow_version_id: str,
        machine_id: str,
        workflow_inputs: Optional[Dict[str, str]] = None,
    ) -> RunRecord:
        """
        Insert a new run in the queued state with no outputs.

        Raises:
            ConflictError: If a run with this id already exists
        """
        if self.db.get(WorkflowRun, run_id) is not None:
            raise ConflictError(f"Run {run_id} already exists", run_id=run_id)

        run = WorkflowRun(
            id=run_id,
            workflow_id=workflow_id,
            workflow_version_id=workflow_version_id,
            machine_id=machine_id,
            status=QUEUED,
            workflow_inputs=workflow_inputs,
        )
        self.db.add(run)
        try:
            self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent insert of the same id
            self.db.rollback()
            raise ConflictError(f"Run {run_id} already exists", run_id=run_id) from e

        logger.info(f"Created run {run_id} for workflow version {workflow_version_id}")
        return self._record(run, [])

    def get(self, run_id: str) -> RunRecord:
        """Load a run with its outputs in arrival order."""
        run = self.db.get(WorkflowRun, run_id)
        if run is None:
            raise RunNotFound("Run not found", run_id=run_id)
        return self._record(run, self._outputs(run_id))

    def apply_status_update(
        self,
        run_id: str,
        new_status: str,
        outputs: Optional[Sequence[Dict[str, Any]]] = None,
    ) -> RunRecord:
        """
        Move a run to ``new_status`` and append outputs in one transaction.

        Repeating the current terminal status is a no-op and its outputs are
        ignored, so duplicate completion callbacks never duplicate results.

        Args:
            run_id: Run to update
            new_status: Target status
            outputs: Output data objects to append, in order

        Returns:
            The run as committed

        Raises:
            RunNotFound: If no run has this id
            InvalidTransitionError: If the lifecycle has no such edge
        """
        if new_status not in ALLOWED_TRANSITIONS:
            raise InvalidTransitionError(f"Unknown status {new_status!r}", run_id=run_id)

        # Row lock serializes concurrent callbacks for the same run
        run = self.db.execute(
            select(WorkflowRun).where(WorkflowRun.id == run_id).with_for_update()
        ).scalar_one_or_none()
        if run is None:
            self.db.rollback()
            raise RunNotFound("Run not found", run_id=run_id)

        current = run.status
        if current in TERMINAL_STATUSES and new_status == current:
            self.db.rollback()
            logger.info(f"Ignoring repeated {new_status} callback for run {run_id}")
            return self.get(run_id)

        if not can_transition(current, new_status):
            self.db.rollback()
            logger.warning(f"Rejected transition {current} -> {new_status} for run {run_id}")
            raise InvalidTransitionError(
                f"Cannot move run from {current} to {new_status}",
                run_id=run_id,
                current=current,
                requested=new_status,
            )

        if outputs:
            position = self.db.execute(
                select(func.count(WorkflowRunOutput.output_pk)).where(WorkflowRunOutput.run_id == run_id)
            ).scalar()
            for data in outputs:
                self.db.add(WorkflowRunOutput(run_id=run_id, position=position, data=copy.deepcopy(data)))
                position += 1

        run.status = new_status
        run.updated_at = datetime.utcnow()
        if new_status in TERMINAL_STATUSES:
            run.ended_at = run.updated_at

        self.db.commit()

        if current != new_status:
            logger.info(f"Run {run_id} moved {current} -> {new_status}")
        return self.get(run_id)

    def _outputs(self, run_id: str) -> List[WorkflowRunOutput]:
        return list(
            self.db.execute(
                select(WorkflowRunOutput)
                .where(WorkflowRunOutput.run_id == run_id)
                .order_by(WorkflowRunOutput.position)
            ).scalars()
        )

    def _record(self, run: WorkflowRun, outputs: List[WorkflowRunOutput]) -> RunRecord:
        return RunRecord(
            id=run.id,
            workflow_id=run.workflow_id,
            workflow_version_id=run.workflow_version_id,
            machine_id=run.machine_id,
            status=run.status,
            workflow_inputs=run.workflow_inputs,
            outputs=tuple(StoredOutput(data=copy.deepcopy(o.data), created_at=o.created_at) for o in outputs),
            created_at=run.created_at,
            updated_at=run.updated_at,
            ended_at=run.ended_at,
        )
