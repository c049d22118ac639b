"""Pytest configuration and fixtures."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-with-enough-bytes-for-hs256"
os.environ["SPACES_ENDPOINT"] = "https://nyc3.digitaloceanspaces.com"
os.environ["SPACES_BUCKET"] = "comfy-outputs"
os.environ["SPACES_ENDPOINT_CDN"] = "https://cdn.example.com"

from datetime import datetime, timedelta, timezone  # noqa: E402

import httpx  # noqa: E402
import jwt  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from runhub.database import Base, get_db  # noqa: E402
from runhub.models import ApiKey, Deployment, Machine, Workflow, WorkflowVersion  # noqa: E402
from runhub.routes.runs import get_dispatcher  # noqa: E402
from runhub.services.dispatcher import RunDispatcher  # noqa: E402

WORKFLOW_API = {
    "3": {"class_type": "KSampler", "inputs": {"seed": 42, "steps": 20}},
    "9": {"class_type": "SaveImage", "inputs": {"filename_prefix": "ComfyUI"}},
}


class FakeMachine:
    """Stands in for a machine's run endpoint behind an httpx.MockTransport."""

    def __init__(self):
        self.requests = []
        self.prompt_ids = ["r1", "r2", "r3"]
        self.status_code = 200
        self.body = None
        self.error = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.body is not None:
            return httpx.Response(self.status_code, content=self.body)
        return httpx.Response(self.status_code, json={"prompt_id": self.prompt_ids.pop(0)})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def dispatcher(self) -> RunDispatcher:
        return RunDispatcher(timeout=5.0, run_path="/run", transport=self.transport())


@pytest.fixture(scope="function")
def engine():
    """In-memory SQLite shared across threads for one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def test_db(session_factory):
    """Create a test database session for each test."""
    db = session_factory()

    yield db

    db.close()


@pytest.fixture
def deployment(test_db):
    """Org O1 workflow, version v1 and deployment d1 on machine m1 (https://m1)."""
    test_db.add(Workflow(id="wf1", name="txt2img", user_id="u1", org_id="O1"))
    test_db.add(Machine(id="m1", name="gpu-1", endpoint="https://m1", user_id="u1", org_id="O1"))
    test_db.flush()
    test_db.add(WorkflowVersion(id="v1", workflow_id="wf1", version=1, workflow={}, workflow_api=WORKFLOW_API))
    test_db.flush()
    test_db.add(
        Deployment(
            id="d1",
            user_id="u1",
            org_id="O1",
            workflow_id="wf1",
            workflow_version_id="v1",
            machine_id="m1",
        )
    )
    test_db.commit()
    return "d1"


@pytest.fixture
def user_deployment(test_db):
    """Personal workflow of user u2 (no org) deployed as d2 on machine m2."""
    test_db.add(Workflow(id="wf2", name="upscale", user_id="u2"))
    test_db.add(Machine(id="m2", name="gpu-2", endpoint="https://m2/", user_id="u2"))
    test_db.flush()
    test_db.add(WorkflowVersion(id="v2", workflow_id="wf2", version=1, workflow_api={"1": {"class_type": "Upscale"}}))
    test_db.flush()
    test_db.add(Deployment(id="d2", user_id="u2", workflow_id="wf2", workflow_version_id="v2", machine_id="m2"))
    test_db.commit()
    return "d2"


@pytest.fixture
def make_token():
    """Mint API tokens the way the key issuer does."""

    def _make(user_id="u1", org_id=None, expires_in=timedelta(hours=1), secret=None):
        payload = {"user_id": user_id, "iat": datetime.now(timezone.utc)}
        if org_id is not None:
            payload["org_id"] = org_id
        if expires_in is not None:
            payload["exp"] = datetime.now(timezone.utc) + expires_in
        return jwt.encode(payload, secret or os.environ["JWT_SECRET"], algorithm="HS256")

    return _make


@pytest.fixture
def revoke(test_db):
    """Put a token on the revocation list."""

    def _revoke(token, user_id="u1", org_id=None):
        test_db.add(ApiKey(key=token, name="revoked", user_id=user_id, org_id=org_id, revoked=True))
        test_db.commit()

    return _revoke


@pytest.fixture
def machine():
    return FakeMachine()


@pytest.fixture
def client(session_factory, machine):
    """API client wired to the test database and the fake machine."""
    from runhub.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_dispatcher] = machine.dispatcher

    yield TestClient(app)

    app.dependency_overrides.clear()
