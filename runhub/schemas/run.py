"""Run-related Pydantic schemas."""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

RunStatusValue = Literal["queued", "running", "success", "failed"]


class RunCreate(BaseModel):
    """Schema for submitting a deployment for execution."""

    deployment_id: str
    inputs: Optional[Dict[str, str]] = None


class RunCreateResponse(BaseModel):
    """Response after a run has been dispatched and recorded."""

    run_id: str


class AssetIn(BaseModel):
    """One image or file a machine reports as uploaded."""

    model_config = ConfigDict(extra="allow")

    filename: str = Field(min_length=1)


class OutputDataIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    images: Optional[List[AssetIn]] = None
    files: Optional[List[AssetIn]] = None


class RunStatusUpdate(BaseModel):
    """Callback payload sent by a machine to report progress."""

    run_id: str
    status: RunStatusValue
    output_data: Optional[OutputDataIn] = None


class MachineRunAck(BaseModel):
    """Acknowledgement returned by a machine's run endpoint."""

    model_config = ConfigDict(extra="ignore")

    prompt_id: str = Field(min_length=1)


class AssetView(BaseModel):
    """One produced image or file, with its public URL once rewritten."""

    model_config = ConfigDict(extra="allow")

    filename: Optional[str] = None
    url: Optional[str] = None


class OutputDataView(BaseModel):
    model_config = ConfigDict(extra="allow")

    images: Optional[List[AssetView]] = None
    files: Optional[List[AssetView]] = None


class OutputView(BaseModel):
    data: OutputDataView
    created_at: Optional[datetime] = None


class RunView(BaseModel):
    """Externally visible representation of a run."""

    id: str
    workflow_id: str
    workflow_version_id: str
    machine_id: str
    status: RunStatusValue
    workflow_inputs: Optional[Dict[str, str]] = None
    outputs: List[OutputView] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None


class ErrorResponse(BaseModel):
    error: str
