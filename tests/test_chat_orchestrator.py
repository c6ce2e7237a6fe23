import asyncio

import pytest

from api.session_manager import SessionStore
from core.chat_orchestrator import StreamingRelay
from core.errors import AuthError, RateLimitError, TransportError, ValidationError
from core.model_registry import ProviderRegistry
from fakes import FakeLLMService, collect_frames
from schemas.chat_schemas import ChatMessage


def _roles(relay: StreamingRelay, session_id: str = "default") -> list[str]:
    return [turn.role for turn in relay.sessions.get_context(session_id)]


@pytest.mark.asyncio
async def test_successful_stream_forwards_fragments_then_done(relay, fake_service) -> None:
    frames = await collect_frames(relay.open_stream("2+2?", "llama-3-70b", "s-1"))

    assert frames == [
        {"content": "Hel", "done": False},
        {"content": "lo", "done": False},
        {"content": " world", "done": False},
        {"content": "", "done": True},
    ]
    history = relay.sessions.get_context("s-1")
    assert history == (
        ChatMessage(role="user", content="2+2?"),
        ChatMessage(role="assistant", content="Hello world"),
    )
    assert fake_service.calls[0][1] == "llama3-70b-8192"
    assert fake_service.streams_closed == 1


@pytest.mark.asyncio
async def test_forwarded_fragments_concatenate_to_stored_turn(relay, fake_service) -> None:
    fake_service.fragments = ["```py\n", "print(1)", "", "\n```", " done"]

    frames = await collect_frames(relay.open_stream("code please", session_id="s-1"))

    streamed = "".join(f["content"] for f in frames if not f["done"])
    assert streamed == relay.sessions.get_context("s-1")[-1].content
    assert all(f["content"] for f in frames[:-1])


@pytest.mark.asyncio
async def test_n_requests_produce_2n_alternating_turns(relay) -> None:
    for index in range(4):
        await collect_frames(relay.open_stream(f"question {index}", session_id="s-1"))

    history = relay.sessions.get_context("s-1")
    assert len(history) == 8
    assert _roles(relay, "s-1") == ["user", "assistant"] * 4
    assert [t.content for t in history[::2]] == [f"question {i}" for i in range(4)]


@pytest.mark.asyncio
async def test_defaults_apply_for_missing_model_and_session(relay, fake_service) -> None:
    await collect_frames(relay.open_stream("hi", model_key=None, session_id=None))

    assert fake_service.calls[0][1] == "llama3-70b-8192"
    assert _roles(relay, "default") == ["user", "assistant"]


def test_missing_credential_rejects_without_mutation(test_settings, fake_service) -> None:
    registry = ProviderRegistry(test_settings, service_factory=lambda api_key, app_settings: fake_service)
    relay = StreamingRelay(SessionStore(), registry, test_settings)

    with pytest.raises(AuthError):
        relay.open_stream("hi", "llama-3-70b", "s-1")

    assert len(relay.sessions) == 0
    assert fake_service.calls == []


def test_credential_is_checked_before_message(test_settings) -> None:
    registry = ProviderRegistry(test_settings, service_factory=FakeLLMService)
    relay = StreamingRelay(SessionStore(), registry, test_settings)

    with pytest.raises(AuthError):
        relay.open_stream("", "nope", "s-1")


@pytest.mark.parametrize("message", [None, "", "   \n"])
def test_empty_message_rejects_without_mutation(relay, message) -> None:
    with pytest.raises(ValidationError) as excinfo:
        relay.open_stream(message, "llama-3-70b", "s-1")

    assert excinfo.value.public_message == "Message is required"
    assert "s-1" not in relay.sessions


def test_unknown_model_never_opens_stream(relay, fake_service) -> None:
    with pytest.raises(ValidationError) as excinfo:
        relay.open_stream("hi", "gpt-4", "s-1")

    assert excinfo.value.public_message == "Invalid model selected"
    assert "s-1" not in relay.sessions
    assert fake_service.calls == []


@pytest.mark.asyncio
async def test_mid_stream_failure_keeps_question_and_ends_with_error_frame(relay, fake_service) -> None:
    fake_service.fragments = ["partial"]
    fake_service.error = RateLimitError("429 from provider, org org_123")

    frames = await collect_frames(relay.open_stream("hi", session_id="s-1"))

    assert frames == [
        {"content": "partial", "done": False},
        {"error": "Rate limit exceeded. Please try again later.", "done": True},
    ]
    assert relay.sessions.get_context("s-1") == (ChatMessage(role="user", content="hi"),)


@pytest.mark.asyncio
async def test_unexpected_failure_is_reported_generically(relay, fake_service) -> None:
    fake_service.fragments = []
    fake_service.error = KeyError("secret internal detail")

    frames = await collect_frames(relay.open_stream("hi", session_id="s-1"))

    assert frames == [{"error": "Error generating response", "done": True}]
    assert _roles(relay, "s-1") == ["user"]


@pytest.mark.asyncio
async def test_eleventh_message_sends_turns_two_to_eleven(relay, fake_service) -> None:
    for index in range(1, 11):
        role = "user" if index % 2 else "assistant"
        relay.sessions.append("s-1", ChatMessage(role=role, content=f"turn {index}"))

    await collect_frames(relay.open_stream("turn 11", session_id="s-1"))

    sent, _ = fake_service.calls[0]
    assert len(sent) == 11
    assert sent[0] == {"role": "system", "content": "You are a test assistant."}
    assert [m["content"] for m in sent[1:]] == [f"turn {i}" for i in range(2, 12)]


@pytest.mark.asyncio
async def test_caller_disconnect_abandons_upstream_without_assistant_turn(relay, fake_service) -> None:
    connection_states = iter([False, True, True, True])

    async def _is_disconnected() -> bool:
        return next(connection_states)

    frames = await collect_frames(
        relay.open_stream("hi", session_id="s-1", is_disconnected=_is_disconnected)
    )

    assert frames == [{"content": "Hel", "done": False}]
    assert _roles(relay, "s-1") == ["user"]
    assert fake_service.streams_closed == 1


@pytest.mark.asyncio
async def test_closing_the_frame_stream_closes_upstream(relay, fake_service) -> None:
    stream = relay.open_stream("hi", session_id="s-1")

    first = await stream.__anext__()
    await stream.aclose()

    assert '"Hel"' in first
    assert fake_service.streams_closed == 1
    assert _roles(relay, "s-1") == ["user"]


@pytest.mark.asyncio
async def test_cancelled_request_commits_no_assistant_turn(relay, fake_service) -> None:
    fake_service.delay = 0.05

    task = asyncio.create_task(collect_frames(relay.open_stream("hi", session_id="s-1")))
    await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert _roles(relay, "s-1") == ["user"]
    assert fake_service.streams_closed == 1


@pytest.mark.asyncio
async def test_idle_timeout_reports_transport_error(relay, fake_service) -> None:
    relay.settings = relay.settings.model_copy(update={"fragment_idle_timeout": 0.01})
    fake_service.delay = 1

    frames = await collect_frames(relay.open_stream("hi", session_id="s-1"))

    assert frames == [{"error": TransportError.public_message, "done": True}]
    assert _roles(relay, "s-1") == ["user"]


@pytest.mark.asyncio
async def test_stream_keeps_client_it_started_with(relay, registry, fake_service) -> None:
    replacement = FakeLLMService(api_key="new-key")
    stream = relay.open_stream("hi", session_id="s-1")
    registry._service_factory = lambda api_key, app_settings: replacement
    registry.set_credential("new-key")

    await collect_frames(stream)

    assert len(fake_service.calls) == 1
    assert replacement.calls == []


@pytest.mark.asyncio
async def test_concurrent_requests_to_one_session_interleave_by_turn(relay, fake_service) -> None:
    async def _ask(question: str) -> list[dict]:
        return await collect_frames(relay.open_stream(question, session_id="shared"))

    results = await asyncio.gather(_ask("first"), _ask("second"))

    assert all(frames[-1] == {"content": "", "done": True} for frames in results)
    history = relay.sessions.get_context("shared")
    assert len(history) == 4
    # Both questions land before either answer: no read-then-append atomicity.
    assert [t.content for t in history[:2]] == ["first", "second"]
    assert _roles(relay, "shared") == ["user", "user", "assistant", "assistant"]
