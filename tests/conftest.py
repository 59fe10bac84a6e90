import pytest
from fastapi.testclient import TestClient

from app.main import app, get_chat_service
from app.services.chat_service import ChatService


@pytest.fixture
def use_service():
    """Install a ChatService into the app; returns a TestClient bound to it."""
    def install(service: ChatService) -> TestClient:
        app.dependency_overrides[get_chat_service] = lambda: service
        return TestClient(app)

    yield install
    app.dependency_overrides.clear()
