import asyncio
from unittest.mock import AsyncMock

import pytest

from discord_copilot.clients import oai
from discord_copilot.response import Orchestrator
from discord_copilot.response.engine import PipelineState
from discord_copilot.response.prompt import FALLBACK_PERSONA

from fakes import FakeChannel, make_message, stored_turns, vec


@pytest.fixture
def orchestrator(services):
    return Orchestrator(services)


@pytest.fixture
def fake_models(monkeypatch):
    embed = AsyncMock(return_value=vec(1, 0, 0, 0))
    chat = AsyncMock(return_value="OK")
    monkeypatch.setattr(oai, "embed_text", embed)
    monkeypatch.setattr(oai, "chat", chat)
    return embed, chat


def test_unauthorized_channel_gets_no_reply_and_no_memory(services, orchestrator, fake_models):
    embed, chat = fake_models
    channel = FakeChannel(555)

    context = asyncio.run(orchestrator.handle(make_message("hello", channel=channel)))

    assert context.state is PipelineState.ABORTED
    assert channel.sent == []
    assert stored_turns(services, 555) == []
    embed.assert_not_awaited()
    chat.assert_not_awaited()


def test_status_scenario_with_fallback_persona(services, seed, orchestrator, fake_models):
    embed, chat = fake_models
    seed.channel(123)
    seed.document("unrelated", [0, 1, 0, 0])  # below the 0.5 threshold
    channel = FakeChannel(123)

    context = asyncio.run(orchestrator.handle(make_message("!status", channel=channel)))

    messages = chat.await_args.args[1]
    assert messages == [
        {"role": "system", "content": FALLBACK_PERSONA},
        {"role": "user", "content": "!status"},
    ]
    assert context.matches == []
    assert context.history == []
    assert channel.sent == ["OK"]
    assert stored_turns(services, 123) == [("user", "!status"), ("model", "OK")]
    assert context.state is PipelineState.DONE


def test_generation_timeout_sends_one_notice_and_persists_nothing(
    services, seed, orchestrator, fake_models
):
    _, chat = fake_models
    chat.side_effect = TimeoutError("model timed out")
    seed.channel(123)
    channel = FakeChannel(123)

    context = asyncio.run(orchestrator.handle(make_message("hi", channel=channel)))

    assert context.state is PipelineState.ABORTED
    assert channel.sent == [services.config.core.FAILURE_NOTICE]
    assert stored_turns(services, 123) == []


def test_embedding_failure_still_reaches_generation(services, seed, orchestrator, fake_models):
    embed, chat = fake_models
    embed.side_effect = RuntimeError("embedding service down")
    seed.channel(123)
    seed.document("would match", [1, 0, 0, 0])
    channel = FakeChannel(123)

    context = asyncio.run(orchestrator.handle(make_message("hi", channel=channel)))

    chat.assert_awaited_once()
    prompt_text = " ".join(m["content"] for m in chat.await_args.args[1])
    assert "Supporting Context" not in prompt_text
    assert channel.sent == ["OK"]
    assert context.state is PipelineState.DONE


def test_retrieved_chunks_reach_prompt_in_score_order(services, seed, orchestrator, fake_models):
    _, chat = fake_models
    seed.channel(123)
    seed.document("medium", [1, 0.5, 0, 0])
    seed.document("best", [1, 0, 0, 0])
    seed.document("weakest", [1, 0.9, 0, 0])
    seed.document("fourth", [1, 0.95, 0, 0])

    asyncio.run(orchestrator.handle(make_message("q", channel=FakeChannel(123))))

    context_block = chat.await_args.args[1][1]["content"]
    assert context_block.index("best") < context_block.index("medium") < context_block.index("weakest")
    assert "fourth" not in context_block


def test_long_reply_is_split_and_full_text_is_persisted(services, seed, orchestrator, fake_models):
    _, chat = fake_models
    reply = "y" * 4500
    chat.return_value = reply
    seed.channel(123)
    channel = FakeChannel(123)

    context = asyncio.run(orchestrator.handle(make_message("long please", channel=channel)))

    assert [len(s) for s in channel.sent] == [2000, 2000, 500]
    assert "".join(channel.sent) == reply
    assert stored_turns(services, 123) == [("user", "long please"), ("model", reply)]
    assert context.segments_sent == context.segments_total == 3


def test_partial_delivery_still_persists_full_reply(services, seed, orchestrator, fake_models):
    _, chat = fake_models
    reply = "z" * 4500
    chat.return_value = reply
    seed.channel(123)
    channel = FakeChannel(123, fail_from=2)

    context = asyncio.run(orchestrator.handle(make_message("long", channel=channel)))

    assert channel.sent == ["z" * 2000]
    assert channel.attempts == 2
    assert context.segments_sent == 1
    assert stored_turns(services, 123) == [("user", "long"), ("model", reply)]
    assert context.state is PipelineState.DONE


def test_history_from_previous_cycle_is_replayed(services, seed, orchestrator, fake_models):
    _, chat = fake_models
    seed.channel(123)
    channel = FakeChannel(123)

    asyncio.run(orchestrator.handle(make_message("first", channel=channel)))
    chat.return_value = "second reply"
    asyncio.run(orchestrator.handle(make_message("second", channel=channel)))

    messages = chat.await_args.args[1]
    assert [(m["role"], m["content"]) for m in messages[1:]] == [
        ("user", "first"),
        ("assistant", "OK"),
        ("user", "second"),
    ]


def test_history_window_is_bounded(services, seed, orchestrator, fake_models):
    _, chat = fake_models
    seed.channel(123)
    for ts in range(14):
        seed.turn(123, "user" if ts % 2 == 0 else "model", f"t{ts}", float(ts))

    asyncio.run(orchestrator.handle(make_message("now", channel=FakeChannel(123))))

    history = [m["content"] for m in chat.await_args.args[1][1:-1]]
    assert history == [f"t{ts}" for ts in range(4, 14)]


@pytest.mark.asyncio
async def test_same_channel_messages_serialize_when_enabled(services, seed, monkeypatch):
    services.config.core.SERIALIZE_CHANNELS = True
    seed.channel(123)
    orchestrator = Orchestrator(services)

    active = 0
    peak = 0

    async def slow_chat(client, messages, *, model):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return "OK"

    monkeypatch.setattr(oai, "embed_text", AsyncMock(return_value=vec(1, 0, 0, 0)))
    monkeypatch.setattr(oai, "chat", slow_chat)

    channel = FakeChannel(123)
    await asyncio.gather(
        orchestrator.handle(make_message("a", channel=channel)),
        orchestrator.handle(make_message("b", channel=channel)),
    )

    assert peak == 1
    assert len(channel.sent) == 2
    assert len(stored_turns(services, 123)) == 4


@pytest.mark.asyncio
async def test_different_channels_run_concurrently(services, seed, monkeypatch):
    services.config.core.SERIALIZE_CHANNELS = True
    seed.channel(1)
    seed.channel(2)
    orchestrator = Orchestrator(services)

    both_started = asyncio.Event()
    started = 0

    async def gated_chat(client, messages, *, model):
        nonlocal started
        started += 1
        if started == 2:
            both_started.set()
        await asyncio.wait_for(both_started.wait(), timeout=1)
        return "OK"

    monkeypatch.setattr(oai, "embed_text", AsyncMock(return_value=vec(1, 0, 0, 0)))
    monkeypatch.setattr(oai, "chat", gated_chat)

    first, second = FakeChannel(1), FakeChannel(2)
    await asyncio.gather(
        orchestrator.handle(make_message("a", channel=first)),
        orchestrator.handle(make_message("b", channel=second)),
    )

    assert first.sent == ["OK"]
    assert second.sent == ["OK"]


def test_typing_indicator_failure_does_not_block_reply(services, seed, orchestrator, fake_models, caplog):
    _, chat = fake_models
    seed.channel(123)
    channel = FakeChannel(123, typing_error=RuntimeError("403 Forbidden: typing"))

    context = asyncio.run(orchestrator.handle(make_message("hello", channel=channel)))

    chat.assert_awaited_once()
    assert channel.sent == ["OK"]
    assert stored_turns(services, 123) == [("user", "hello"), ("model", "OK")]
    assert context.state is PipelineState.DONE
    assert "Typing indicator failed for channel 123" in caplog.text
