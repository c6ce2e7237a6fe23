import pytest
from fastapi.testclient import TestClient

from api.session_manager import SessionStore
from config import Settings
from core.chat_orchestrator import StreamingRelay
from core.model_registry import ProviderRegistry
from fakes import FakeLLMService
from main import create_app

SYSTEM_PROMPT = "You are a test assistant."


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        groq_api_key=None,
        system_prompt=SYSTEM_PROMPT,
        context_window_turns=10,
        default_session_id="default",
        default_model="llama-3-70b",
        fragment_idle_timeout=None,
    )


@pytest.fixture
def fake_service() -> FakeLLMService:
    return FakeLLMService()


@pytest.fixture
def registry(fake_service: FakeLLMService, test_settings: Settings) -> ProviderRegistry:
    return ProviderRegistry(test_settings, service_factory=lambda api_key, app_settings: fake_service)


@pytest.fixture
def relay(registry: ProviderRegistry, test_settings: Settings) -> StreamingRelay:
    registry.set_credential("test-key")
    return StreamingRelay(sessions=SessionStore(), registry=registry, settings=test_settings)


@pytest.fixture
def client(test_settings: Settings, fake_service: FakeLLMService):
    app = create_app(test_settings, service_factory=lambda api_key, app_settings: fake_service)
    with TestClient(app) as test_client:
        yield test_client
