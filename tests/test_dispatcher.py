"""Tests for the machine run dispatcher."""

import json

import httpx
import pytest

from runhub.exceptions import BadMachineResponse, MachineUnreachable


def test_dispatch_posts_payload(machine):
    """Test that dispatch posts the workflow and callback to {endpoint}/run."""
    ack = machine.dispatcher().dispatch(
        "https://m1",
        {"3": {"class_type": "KSampler"}},
        "https://hub.example.com/api/update-run",
        inputs={"prompt": "a cat"},
    )

    assert ack.prompt_id == "r1"
    request = machine.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://m1/run"
    body = json.loads(request.content)
    assert body["workflow_api"] == {"3": {"class_type": "KSampler"}}
    assert body["status_endpoint"] == "https://hub.example.com/api/update-run"
    assert body["inputs"] == {"prompt": "a cat"}


def test_run_url_normalizes_slashes(machine):
    """Test URL joining with trailing and leading slashes."""
    assert machine.dispatcher().run_url("https://m2/") == "https://m2/run"


def test_dispatch_omits_empty_inputs(machine):
    """Test that no inputs key is sent when there are no inputs."""
    machine.dispatcher().dispatch("https://m1", {}, "https://hub/cb")

    assert "inputs" not in json.loads(machine.requests[0].content)


def test_dispatch_connection_error(machine):
    """Test that a connection failure is reported as unreachable."""
    machine.error = httpx.ConnectError("connection refused")

    with pytest.raises(MachineUnreachable):
        machine.dispatcher().dispatch("https://m1", {}, "https://hub/cb")


def test_dispatch_timeout(machine):
    """Test that a timeout is reported as unreachable."""
    machine.error = httpx.ReadTimeout("timed out")

    with pytest.raises(MachineUnreachable):
        machine.dispatcher().dispatch("https://m1", {}, "https://hub/cb")


def test_dispatch_error_status(machine):
    """Test that an error status is a bad response."""
    machine.status_code = 500
    machine.body = b"internal error"

    with pytest.raises(BadMachineResponse):
        machine.dispatcher().dispatch("https://m1", {}, "https://hub/cb")


@pytest.mark.parametrize(
    "body",
    [b"not json", b"\xff\xfe\xfa garbage", b"", b"{}", b'{"prompt_id": ""}', b'{"prompt_id": 12}', b"[]"],
)
def test_dispatch_invalid_acknowledgement(machine, body):
    """Test that responses failing the schema are bad responses."""
    machine.body = body

    with pytest.raises(BadMachineResponse):
        machine.dispatcher().dispatch("https://m1", {}, "https://hub/cb")


def test_dispatch_does_not_retry(machine):
    """Test that a failed dispatch is attempted exactly once."""
    machine.error = httpx.ConnectError("connection refused")

    with pytest.raises(MachineUnreachable):
        machine.dispatcher().dispatch("https://m1", {}, "https://hub/cb")

    assert len(machine.requests) == 1


def test_dispatch_malformed_endpoint(machine):
    """Test that an endpoint httpx cannot parse is reported as unreachable."""
    with pytest.raises(MachineUnreachable):
        machine.dispatcher().dispatch("https://m1\x00bad", {}, "https://hub/cb")

    assert machine.requests == []
