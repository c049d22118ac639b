"""Authorized, externally visible views of runs."""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from runhub.exceptions import ForbiddenError, RunNotFound
from runhub.models.workflow import Workflow
from runhub.schemas.run import OutputView, RunView
from runhub.services.asset_urls import AssetURLRewriter
from runhub.services.auth import AuthContext
from runhub.services.resolver import WorkflowScope
from runhub.services.run_store import SUCCESS, RunRecord, RunStore

logger = logging.getLogger(__name__)


class RunReader:
    """Loads a run for a caller and renders it with public asset URLs."""

    def __init__(self, db: Session, rewriter: Optional[AssetURLRewriter] = None):
        self.db = db
        self.store = RunStore(db)
        self.rewriter = rewriter or AssetURLRewriter()

    def read(self, auth: AuthContext, run_id: str) -> RunView:
        """
        Read a run on behalf of an authenticated caller.

        Raises:
            RunNotFound: No run with this id
            ForbiddenError: The run's workflow belongs to another org or user
        """
        record = self.store.get(run_id)

        scope = self._workflow_scope(record.workflow_id)
        if scope is None:
            raise RunNotFound("Run not found", run_id=run_id)
        if not auth.owns(scope.org_id, scope.user_id):
            logger.info(f"User {auth.user_id} denied access to run {run_id}")
            raise ForbiddenError("Run not found", run_id=run_id)

        return self.to_view(record)

    def to_view(self, record: RunRecord) -> RunView:
        outputs = [o.data for o in record.outputs]
        if record.status == SUCCESS and outputs:
            outputs = self.rewriter.rewrite_outputs(record.id, outputs)

        return RunView(
            id=record.id,
            workflow_id=record.workflow_id,
            workflow_version_id=record.workflow_version_id,
            machine_id=record.machine_id,
            status=record.status,
            workflow_inputs=record.workflow_inputs,
            outputs=[
                OutputView(data=data, created_at=stored.created_at)
                for data, stored in zip(outputs, record.outputs)
            ],
            created_at=record.created_at,
            updated_at=record.updated_at,
            ended_at=record.ended_at,
        )

    def _workflow_scope(self, workflow_id: str) -> Optional[WorkflowScope]:
        row = self.db.execute(
            select(Workflow.user_id, Workflow.org_id).where(Workflow.id == workflow_id)
        ).first()
        if row is None:
            return None
        return WorkflowScope(user_id=row.user_id, org_id=row.org_id)
