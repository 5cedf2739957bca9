import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import numpy as np
import pytest
from ollama import ResponseError
from openai import OpenAIError

from discord_copilot.clients import oai, ollama
from discord_copilot.errors import EmbeddingError, GenerationError


def _embedding_client(vector=None, error=None):
    create = AsyncMock(
        return_value=SimpleNamespace(data=[SimpleNamespace(embedding=vector)]),
        side_effect=error,
    )
    return SimpleNamespace(embeddings=SimpleNamespace(create=create))


def _chat_client(content="hi", error=None, choices=True):
    resp = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))] if choices else [],
        usage=SimpleNamespace(prompt_tokens=3, completion_tokens=1),
    )
    create = AsyncMock(return_value=resp, side_effect=error)
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def test_embed_text_returns_float32_vector():
    client = _embedding_client([0.1, 0.2, 0.3, 0.4])

    vec = asyncio.run(oai.embed_text(client, "hello", model="emb", dim=4))

    assert vec.dtype == np.float32
    assert vec.shape == (4,)
    client.embeddings.create.assert_awaited_once_with(model="emb", input="hello")


def test_embed_text_empty_input_skips_request():
    client = _embedding_client()

    vec = asyncio.run(oai.embed_text(client, "", model="emb", dim=4))

    assert not vec.any()
    client.embeddings.create.assert_not_awaited()


def test_embed_text_wrong_dimension_raises():
    client = _embedding_client([0.1, 0.2])

    with pytest.raises(EmbeddingError, match="expected 4"):
        asyncio.run(oai.embed_text(client, "hello", model="emb", dim=4))


def test_embed_text_wraps_sdk_errors():
    client = _embedding_client(error=OpenAIError("quota"))

    with pytest.raises(EmbeddingError):
        asyncio.run(oai.embed_text(client, "hello", model="emb", dim=4))


def test_chat_strips_reply_and_handles_missing_content():
    assert asyncio.run(oai.chat(_chat_client("  Hi!  "), [], model="m")) == "Hi!"
    assert asyncio.run(oai.chat(_chat_client(None), [], model="m")) == ""
    assert asyncio.run(oai.chat(_chat_client(choices=False), [], model="m")) == ""


def test_chat_wraps_sdk_errors():
    with pytest.raises(GenerationError):
        asyncio.run(oai.chat(_chat_client(error=OpenAIError("down")), [], model="m"))


def test_create_client_disables_retries():
    client = oai.create_client("sk-test", timeout=5)

    assert client.max_retries == 0
    assert client.timeout == 5


def test_local_chat_reply_and_errors():
    client = SimpleNamespace(
        chat=AsyncMock(return_value=SimpleNamespace(message=SimpleNamespace(content=" local ")))
    )
    assert asyncio.run(ollama.chat(client, [], model="llama")) == "local"

    client.chat = AsyncMock(side_effect=ResponseError("model not found", 404))
    with pytest.raises(GenerationError, match="model not found"):
        asyncio.run(ollama.chat(client, [], model="llama"))
