import pytest

from ai_services.api import service as api
from ai_services.domain.exceptions import InvalidArgumentError
from ai_services.services.local_service import LocalInferenceService
from ai_services.services.registry import ServiceRegistry
from ai_services.services.relay_service import RelayService


class FakeTransport:
    async def generate_text(self, slug, payload):
        return [{"content": {"role": "model", "parts": [{"text": f"from {slug}"}]}}]


class FakeEngine:
    async def create_text_session(self, options):
        raise AssertionError("engine should not be used in registry tests")


def make_registry():
    return ServiceRegistry(transport=FakeTransport(), local_engine=FakeEngine())


def test_get_is_memoized_by_slug():
    registry = make_registry()
    first = registry.get({"slug": "x", "capabilities": ["text-generation"], "available_models": ["m1"]})
    second = registry.get({"slug": "x", "name": "Other", "capabilities": [], "available_models": ["m2"]})
    assert first is second
    assert second.list_models() == ("m1",)
    assert second.has_capability("text-generation")


def test_variant_selected_by_slug():
    registry = make_registry()
    browser = registry.get({"slug": "browser", "capabilities": ["text-generation"], "available_models": ["d"]})
    relay = registry.get({"slug": "openai", "capabilities": ["text-generation"], "available_models": ["gpt"]})
    assert isinstance(browser, LocalInferenceService)
    assert isinstance(relay, RelayService)
    assert registry.slugs() == ["browser", "openai"]
    assert "openai" in registry
    assert registry.has("browser")
    assert len(registry) == 2


def test_failed_construction_is_not_cached():
    registry = make_registry()
    with pytest.raises(InvalidArgumentError):
        registry.get({"slug": "empty", "capabilities": ["text-generation"], "available_models": []})
    assert "empty" not in registry
    svc = registry.get({"slug": "empty", "capabilities": ["text-generation"], "available_models": ["now"]})
    assert svc.list_models() == ("now",)


def test_registries_are_independent():
    descriptor = {"slug": "x", "available_models": ["m"]}
    assert make_registry().get(descriptor) is not make_registry().get(descriptor)


@pytest.mark.asyncio
async def test_default_registry_facade(monkeypatch):
    api.reset_default_registry()
    registry = make_registry()
    monkeypatch.setattr(api, "_registry", registry)

    descriptor = {"slug": "google", "capabilities": ["text-generation"], "available_models": ["gemini"]}
    assert api.get_service(descriptor) is registry.get(descriptor)
    result = await api.generate_text(descriptor, "Hello")
    assert result == [{"content": {"role": "model", "parts": [{"text": "from google"}]}}]


def test_default_registry_is_singleton():
    api.reset_default_registry()
    try:
        assert api.get_default_registry() is api.get_default_registry()
    finally:
        api.reset_default_registry()
