import pytest
from fastapi.testclient import TestClient

from api import state
from classification.task_classifier import StaticClassifier
from storage.memory_store import InMemoryTaskStore


class FakeProvider:
    def __init__(self, response_text: str):
        self._response_text = response_text
        self.calls = []

    def generate(self, *, system: str, user: str, model=None) -> str:
        self.calls.append(user)
        return self._response_text


@pytest.fixture
def fake_provider_factory():
    def _make(response_text: str):
        return FakeProvider(response_text)
    return _make


@pytest.fixture
def store():
    return InMemoryTaskStore()


@pytest.fixture
def classifier():
    return StaticClassifier(
        {
            "pay rent": "Q1_DO",
            "plan vacation": "Q2_SCHEDULE",
            "answer newsletter": "Q3_DELEGATE",
        }
    )


@pytest.fixture
def app(store, classifier):
    from api.main import app as fastapi_app

    state.store = store
    state.classifier = classifier
    yield fastapi_app
    state.store = None
    state.classifier = None


@pytest.fixture
def client(app):
    return TestClient(app)
