"""Submit a deployment for execution: resolve, dispatch, record."""

import logging
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from runhub.config import settings
from runhub.exceptions import ConflictError, DeploymentNotFound, RunHubError
from runhub.services.auth import AuthContext
from runhub.services.dispatcher import RunDispatcher
from runhub.services.resolver import resolve_deployment
from runhub.services.run_store import RunRecord, RunStore

logger = logging.getLogger(__name__)


def build_callback_url(origin: str) -> str:
    """URL a machine calls back with status updates."""
    base = settings.PUBLIC_BASE_URL or origin
    return f"{base.rstrip('/')}/{settings.CALLBACK_PATH.lstrip('/')}"


class RunSubmitter:
    """Coordinates the resolver, the dispatcher and the run store."""

    def __init__(self, db: Session, dispatcher: Optional[RunDispatcher] = None):
        self.db = db
        self.dispatcher = dispatcher or RunDispatcher()
        self.store = RunStore(db)

    def submit(
        self,
        auth: AuthContext,
        deployment_id: str,
        origin: str,
        inputs: Optional[Dict[str, str]] = None,
    ) -> RunRecord:
        """
        Dispatch a deployment to its machine and record the queued run.

        The machine's acknowledgement id becomes the run id, so the run is
        recorded only after dispatch succeeds. A dispatch error leaves no
        run behind.

        Args:
            auth: Caller identity
            deployment_id: Deployment to execute
            origin: Origin of the inbound request, used for the callback URL
            inputs: Optional workflow inputs forwarded to the machine

        Returns:
            The newly created run

        Raises:
            DeploymentNotFound: Unknown deployment, or one the caller cannot see
            DispatchError: The machine was unreachable or answered badly
            ConflictError: The machine reused an id already on record
            RunHubError: The run could not be recorded after dispatch
        """
        deployment = resolve_deployment(self.db, deployment_id)
        if not auth.owns(deployment.scope.org_id, deployment.scope.user_id):
            raise DeploymentNotFound("Deployment not found", deployment_id=deployment_id)

        # Release the read transaction before the network call
        self.db.rollback()

        ack = self.dispatcher.dispatch(
            deployment.machine.endpoint,
            deployment.version.workflow_api,
            build_callback_url(origin),
            inputs=inputs,
        )

        try:
            return self.store.create(
                run_id=ack.prompt_id,
                workflow_id=deployment.version.workflow_id,
                workflow_version_id=deployment.version.id,
                machine_id=deployment.machine.id,
                workflow_inputs=inputs,
            )
        except ConflictError:
            logger.error(f"Machine {deployment.machine.id} returned duplicate prompt id {ack.prompt_id}")
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Run {ack.prompt_id} was dispatched to machine {deployment.machine.id} "
                f"but could not be recorded: {e}"
            )
            raise RunHubError("Failed to record run", run_id=ack.prompt_id) from e
