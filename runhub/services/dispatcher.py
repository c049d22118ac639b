"""Client that submits workflow payloads to a machine's run endpoint."""

import logging
from typing import Any, Dict, Optional

import httpx

from runhub.config import settings
from runhub.exceptions import BadMachineResponse, MachineUnreachable
from runhub.schemas.run import MachineRunAck

logger = logging.getLogger(__name__)


class RunDispatcher:
    """Sends one execution request per call. Never retries."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        run_path: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the dispatcher.

        ``transport`` lets tests substitute an ``httpx.MockTransport``.
        """
        self.timeout = timeout if timeout is not None else settings.DISPATCH_TIMEOUT
        self.run_path = run_path if run_path is not None else settings.MACHINE_RUN_PATH
        self.transport = transport

    def run_url(self, machine_endpoint: str) -> str:
        """Build the run endpoint URL for a machine."""
        return f"{machine_endpoint.rstrip('/')}/{self.run_path.lstrip('/')}"

    def dispatch(
        self,
        machine_endpoint: str,
        workflow_api: Dict[str, Any],
        callback_url: str,
        inputs: Optional[Dict[str, str]] = None,
    ) -> MachineRunAck:
        """
        Ask a machine to execute a workflow version.

        Args:
            machine_endpoint: Machine base URL
            workflow_api: Executable workflow payload
            callback_url: URL the machine calls to report status
            inputs: Optional caller-supplied workflow inputs

        Returns:
            Parsed acknowledgement carrying the machine-assigned prompt_id

        Raises:
            MachineUnreachable: No response was obtained (connect error, timeout)
            BadMachineResponse: The response was an error or failed validation
        """
        url = self.run_url(machine_endpoint)
        payload: Dict[str, Any] = {
            "workflow_api": workflow_api,
            "status_endpoint": callback_url,
        }
        if inputs:
            payload["inputs"] = inputs

        logger.info(f"Dispatching run to {url}")

        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = client.post(url, json=payload)
            except (httpx.TransportError, httpx.InvalidURL) as e:
                logger.error(f"Machine at {url} unreachable: {e}")
                raise MachineUnreachable(f"Machine unreachable: {e}", url=url) from e

        if response.is_error:
            logger.error(f"Machine at {url} answered {response.status_code}")
            raise BadMachineResponse(
                f"Machine returned status {response.status_code}",
                url=url,
                status_code=response.status_code,
            )

        try:
            ack = MachineRunAck.model_validate(response.json())
        except ValueError as e:
            # Undecodable text, invalid JSON and schema failures are all ValueErrors
            logger.error(f"Invalid acknowledgement from {url}: {e}")
            raise BadMachineResponse("Machine returned an invalid acknowledgement", url=url) from e

        logger.info(f"Machine at {url} acknowledged prompt {ack.prompt_id}")
        return ack
