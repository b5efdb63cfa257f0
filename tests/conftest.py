# tests/conftest.py
import pytest
from fastapi.testclient import TestClient
import sys
import os

# Add project root to Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from support_rag.config import AssistantConfig
from support_rag.main import create_app
from support_rag.memory.documents import create_document
from support_rag.observability.metrics import metrics_tracker


class FakeGenerationClient:
    """
    Stand-in for the generation service.

    Records every call so tests can inspect the request, and returns a
    fixed answer (or raises `error` when set).
    """

    available = True

    def __init__(self, answer="This is the answer based on the context.", error=None):
        self.answer = answer
        self.error = error
        self.calls = []

    def generate(self, system_instruction, turns, temperature):
        self.calls.append({
            "system_instruction": system_instruction,
            "turns": turns,
            "temperature": temperature,
        })
        if self.error is not None:
            raise self.error
        return self.answer


@pytest.fixture
def fake_llm():
    return FakeGenerationClient()


@pytest.fixture
def fake_llm_factory():
    """Build a FakeGenerationClient with a custom answer or error."""
    return FakeGenerationClient


@pytest.fixture
def config():
    """Default configuration with no credentials."""
    return AssistantConfig()


@pytest.fixture
def retrieval_config():
    """Configuration that forces retrieval mode for any non-trivial corpus."""
    return AssistantConfig(full_context_threshold=50)


@pytest.fixture
def make_document():
    """
    Build a chunked Document from a name and text.

    Usage:
        doc = make_document("faq.txt", "Our warranty policy is 1 year.")
    """
    def _make(name, text, document_id=None):
        return create_document(name, text, document_id=document_id)

    return _make


@pytest.fixture
def app(config, fake_llm):
    return create_app(config=config, generation_client=fake_llm, configure_logging=False)


@pytest.fixture
def client(app):
    """
    FastAPI test client.

    Used to make requests to the API in tests.
    """
    return TestClient(app)


@pytest.fixture
def upload_text_document(client):
    """
    Upload a text document and return its ID.

    Helper fixture that handles the upload process.
    """
    def _upload(filename="faq.txt", text="Our warranty policy is 1 year from purchase."):
        response = client.post(
            "/upload",
            files={"file": (filename, text.encode("utf-8"), "text/plain")}
        )
        assert response.status_code == 200, f"Upload failed: {response.json()}"
        return response.json()["document_id"]

    return _upload


@pytest.fixture(autouse=True)
def reset_metrics():
    """Metrics are process-wide; start every test from zero."""
    metrics_tracker.reset()
    yield
    metrics_tracker.reset()
