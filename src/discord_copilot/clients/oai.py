"""Thin async wrappers over the OpenAI embeddings and chat endpoints."""
from openai import AsyncOpenAI, OpenAIError
import numpy as np

from discord_copilot.errors import EmbeddingError, GenerationError

import logging
logger = logging.getLogger(__name__)


def create_client(api_key: str, *, timeout: float) -> AsyncOpenAI:
    """One client per process. No SDK retries: each call is a single attempt."""
    return AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)

# ==============================================
# Embeddings
# ==============================================
async def embed_text(
    client: AsyncOpenAI,
    text: str,
    *,
    model: str,
    dim: int,
) -> np.ndarray:
    """
    Embed ``text`` as a float32 vector of length ``dim``.

    Empty text maps to the zero vector without a request. SDK failures and
    vectors of the wrong length raise :class:`EmbeddingError`.
    """
    if not text:
        return np.zeros(dim, dtype=np.float32)

    try:
        resp = await client.embeddings.create(model=model, input=text)
    except OpenAIError as exc:
        raise EmbeddingError(f"embedding request to {model} failed: {exc}") from exc

    vec = np.asarray(resp.data[0].embedding, dtype=np.float32)
    if vec.size != dim:
        raise EmbeddingError(f"{model} returned {vec.size} dimensions, expected {dim}")
    return vec

# ==============================================
# Chat
# ==============================================
async def chat(
    client: AsyncOpenAI,
    messages: list[dict],
    *,
    model: str,
) -> str:
    """Single chat completion; returns the stripped reply text ("" when absent)."""
    try:
        resp = await client.chat.completions.create(model=model, messages=messages)
    except OpenAIError as exc:
        raise GenerationError(f"chat completion with {model} failed: {exc}") from exc

    if not resp.choices:
        return ""
    usage = getattr(resp, "usage", None)
    if usage is not None:
        logger.debug(
            "%s usage: prompt=%s completion=%s",
            model,
            usage.prompt_tokens,
            usage.completion_tokens,
        )
    return (resp.choices[0].message.content or "").strip()
