"""Status callbacks from machines."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from runhub.config import settings
from runhub.database import get_db
from runhub.schemas.run import RunStatusUpdate
from runhub.services.run_store import RunStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["callbacks"])


@router.post(settings.CALLBACK_PATH)
def update_run(
    data: RunStatusUpdate,
    db: Session = Depends(get_db),
):
    """Apply a status update (and optional output) reported by a machine."""
    outputs = None
    if data.output_data is not None:
        outputs = [data.output_data.model_dump(exclude_none=True)]
    run = RunStore(db).apply_status_update(data.run_id, data.status, outputs)
    return {"run_id": run.id, "status": run.status}
