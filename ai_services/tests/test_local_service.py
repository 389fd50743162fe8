import httpx
import pytest

from ai_services.domain.exceptions import (
    ApiError,
    ServiceError,
    UnsupportedCapabilityError,
    UnsupportedOperationError,
)
from ai_services.domain.models import Candidate, Content, Part, ServiceDescriptor
from ai_services.infrastructure.local_engine.openai_compat import OpenAICompatibleEngine
from ai_services.services.local_service import LocalInferenceService, flatten_prompt


DESCRIPTOR = ServiceDescriptor(
    slug="browser",
    name="Browser built-in AI",
    capabilities=frozenset({"text-generation"}),
    available_models=("default",),
)


class FakeSession:
    def __init__(self, engine, reply):
        self._engine = engine
        self._reply = reply

    async def prompt(self, text):
        self._engine.prompts.append(text)
        if isinstance(self._reply, Exception):
            raise self._reply
        return self._reply


class FakeEngine:
    def __init__(self, reply="local reply"):
        self.reply = reply
        self.options = []
        self.prompts = []

    async def create_text_session(self, options):
        self.options.append(options)
        return FakeSession(self, self.reply)


class SettingsStub:
    local_engine_base_url = "http://127.0.0.1:11434/v1"
    local_engine_api_key = None
    local_engine_default_model = "gemini-nano"
    http_timeout = 1.0


@pytest.mark.asyncio
async def test_generate_text_wraps_reply_as_candidate():
    engine = FakeEngine()
    svc = LocalInferenceService(DESCRIPTOR, engine)
    candidates = await svc.generate_text("Hello")
    assert candidates == [Candidate(content=Content(role="model", parts=[Part(text="local reply")]))]
    assert engine.prompts == ["Hello"]
    assert engine.options == [{}]


@pytest.mark.asyncio
async def test_history_is_not_supported():
    engine = FakeEngine()
    svc = LocalInferenceService(DESCRIPTOR, engine)
    with pytest.raises(UnsupportedOperationError) as exc:
        await svc.generate_text(
            [
                {"role": "user", "parts": [{"text": "a"}]},
                {"role": "user", "parts": [{"text": "b"}]},
            ]
        )
    assert "does not support history" in exc.value.message
    assert engine.prompts == []


@pytest.mark.asyncio
async def test_single_turn_list_uses_its_parts():
    engine = FakeEngine()
    svc = LocalInferenceService(DESCRIPTOR, engine)
    await svc.generate_text([Content(role="user", parts=[Part(text="line 1"), Part(text="line 2")])])
    assert engine.prompts == ["line 1\nline 2"]


def test_flatten_prompt_shapes():
    assert flatten_prompt([{"text": "a"}, {"inlineData": {}}, {"text": "c"}]) == "a\n\nc"
    assert flatten_prompt({"role": "user", "parts": [{"text": "x"}]}) == "x"
    assert flatten_prompt(Content(role="user", parts=[Part(text="y")])) == "y"
    assert flatten_prompt("plain") == "plain"


@pytest.mark.asyncio
async def test_model_is_merged_into_options():
    engine = FakeEngine()
    svc = LocalInferenceService(DESCRIPTOR, engine)
    await svc.generate_text("hi", model="default", model_params={"temperature": 0.5})
    assert engine.options == [{"model": "default", "temperature": 0.5}]


@pytest.mark.asyncio
async def test_explicit_model_param_wins_over_model_argument():
    # Documented quirk: model_params["model"] is spread after the model argument.
    engine = FakeEngine()
    svc = LocalInferenceService(DESCRIPTOR, engine)
    await svc.generate_text("hi", model="default", model_params={"model": "other"})
    assert engine.options == [{"model": "other"}]


@pytest.mark.asyncio
async def test_engine_failure_becomes_service_error():
    svc = LocalInferenceService(DESCRIPTOR, FakeEngine(reply=RuntimeError("engine crashed")))
    with pytest.raises(ServiceError) as exc:
        await svc.generate_text("hi")
    assert exc.value.message == "engine crashed"


@pytest.mark.asyncio
async def test_capability_required():
    descriptor = ServiceDescriptor(slug="browser", capabilities=frozenset(), available_models=("default",))
    svc = LocalInferenceService(descriptor, FakeEngine())
    with pytest.raises(UnsupportedCapabilityError):
        await svc.generate_text("hi")


@pytest.mark.asyncio
async def test_chat_session_on_local_service_rejects_second_turn():
    engine = FakeEngine()
    svc = LocalInferenceService(DESCRIPTOR, engine)
    session = svc.start_chat()
    reply = await session.send_message("first")
    assert reply.text == "local reply"
    with pytest.raises(UnsupportedOperationError):
        await session.send_message("second")
    assert len(session.get_history()) == 2


@pytest.mark.asyncio
async def test_openai_compatible_engine_maps_options(monkeypatch):
    captured = {}

    class Client:
        def __init__(self, *a, **kw):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, *a):
            return False

        async def post(self, url, json=None, headers=None, **_):
            captured["url"] = url
            captured["payload"] = json
            return httpx.Response(
                200,
                json={"choices": [{"message": {"role": "assistant", "content": "pong"}}]},
            )

    monkeypatch.setattr("httpx.AsyncClient", Client)
    engine = OpenAICompatibleEngine(SettingsStub())
    session = await engine.create_text_session({"topK": 3, "temperature": 0.1, "systemPrompt": "be brief"})
    text = await session.prompt("ping")

    assert text == "pong"
    assert captured["url"] == "http://127.0.0.1:11434/v1/chat/completions"
    payload = captured["payload"]
    assert payload["model"] == "gemini-nano"
    assert payload["top_k"] == 3
    assert payload["temperature"] == 0.1
    assert payload["messages"] == [
        {"role": "system", "content": "be brief"},
        {"role": "user", "content": "ping"},
    ]


@pytest.mark.asyncio
async def test_openai_compatible_engine_http_error(monkeypatch):
    class Client:
        def __init__(self, *a, **kw):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, *a):
            return False

        async def post(self, *a, **kw):
            return httpx.Response(500, text="model not loaded")

    monkeypatch.setattr("httpx.AsyncClient", Client)
    session = await OpenAICompatibleEngine(SettingsStub()).create_text_session({"model": "tiny"})
    assert session.model == "tiny"
    with pytest.raises(ApiError) as exc:
        await session.prompt("ping")
    assert exc.value.message == "model not loaded"
