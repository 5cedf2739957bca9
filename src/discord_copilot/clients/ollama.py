"""Chat against a model served by a local Ollama instance."""

from ollama import AsyncClient, ResponseError

from discord_copilot.errors import GenerationError


def create_client(host: str, *, timeout: float) -> AsyncClient:
    return AsyncClient(host=host, timeout=timeout)


async def chat(client: AsyncClient, messages: list[dict], *, model: str) -> str:
    """Same contract as :func:`discord_copilot.clients.oai.chat`."""
    try:
        resp = await client.chat(model=model, messages=messages)
    except ResponseError as exc:
        raise GenerationError(f"local model {model} failed: {exc.error}") from exc

    return (resp.message.content or "").strip()
