import pytest
from fastapi.testclient import TestClient

from app.api import workflows as workflows_api
from app.main import app
from app.services.workflow_service import WorkflowService


@pytest.fixture
def service(tmp_path):
    """Workflow service backed by a temporary directory."""
    return WorkflowService(workflows_dir=tmp_path / "workflows")


@pytest.fixture
def client(monkeypatch, service):
    monkeypatch.setattr(workflows_api, "workflow_service", service)
    return TestClient(app)


@pytest.fixture
def sample_workflow_data():
    return {
        "nodes": {
            "n1": {"name": "Start", "type": "webhook"},
            "n2": {"name": "End"},
        },
        "connections": {
            "n1": {"main": {"0": [{"node": "n2"}]}},
        },
    }
