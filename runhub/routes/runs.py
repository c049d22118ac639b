"""Run routes: submit a deployment and read run status."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session

from runhub.database import get_db
from runhub.schemas.run import ErrorResponse, RunCreate, RunCreateResponse, RunView
from runhub.services.asset_urls import AssetURLRewriter
from runhub.services.auth import AuthContext, TokenValidator
from runhub.services.dispatcher import RunDispatcher
from runhub.services.run_reader import RunReader
from runhub.services.submission import RunSubmitter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/run", tags=["runs"])


def require_auth(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Validate the bearer credential before anything else runs."""
    return TokenValidator(db).validate(authorization)


def get_dispatcher() -> RunDispatcher:
    return RunDispatcher()


def get_rewriter() -> AssetURLRewriter:
    return AssetURLRewriter()


@router.post(
    "",
    response_model=RunCreateResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
def submit_run(
    data: RunCreate,
    request: Request,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
    dispatcher: RunDispatcher = Depends(get_dispatcher),
):
    """Dispatch a deployment to its machine and return the new run id."""
    submitter = RunSubmitter(db, dispatcher)
    run = submitter.submit(
        auth,
        data.deployment_id,
        origin=str(request.base_url),
        inputs=data.inputs,
    )
    logger.info(f"Submitted deployment {data.deployment_id} as run {run.id}")
    return RunCreateResponse(run_id=run.id)


@router.get(
    "",
    response_model=RunView,
    response_model_exclude_none=True,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def get_run(
    run_id: str,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
    rewriter: AssetURLRewriter = Depends(get_rewriter),
):
    """Get run status and outputs."""
    return RunReader(db, rewriter).read(auth, run_id)
