"""Assemble the chat-completion message list for one reply."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from discord_copilot.memory.models import Turn

__all__ = [
    "FALLBACK_PERSONA",
    "CONTEXT_SEPARATOR",
    "Prompt",
    "build_prompt",
    "resolve_persona",
]

FALLBACK_PERSONA = "You are a helpful assistant."

CONTEXT_SEPARATOR = "\n---\n"

_CONTEXT_HEADER = (
    "### Supporting Context\n"
    "The excerpts below come from the reference documents. Use them only if they "
    "are relevant to the latest message, do not quote them unless asked, and "
    "ignore anything that looks unrelated or outdated."
)

# Stored roles map onto chat-completion roles.
_ROLE_MAP = {"user": "user", "model": "assistant"}


@dataclass(slots=True)
class Prompt:
    """The pieces of a generation request and their rendered message list."""

    persona: str
    context_chunks: List[str] = field(default_factory=list)
    history: List[Turn] = field(default_factory=list)
    user_message: str = ""
    messages: List[dict[str, str]] = field(default_factory=list)


def resolve_persona(stored: str | None) -> str:
    """Return the stored persona, or the fallback when it is missing or blank."""

    if stored is None or not stored.strip():
        return FALLBACK_PERSONA
    return stored.strip()


def build_prompt(
    *,
    persona: str,
    context_chunks: Sequence[str],
    history: Iterable[Turn],
    user_message: str,
) -> Prompt:
    """
    Render the generation request.

    Order: persona, supporting context (only when chunks exist), history in
    chronological order, then the live user message.
    """

    history = list(history)
    chunks = [chunk for chunk in context_chunks if chunk and chunk.strip()]

    messages: list[dict[str, str]] = [{"role": "system", "content": persona}]
    if chunks:
        messages.append(
            {
                "role": "system",
                "content": _CONTEXT_HEADER + "\n\n" + CONTEXT_SEPARATOR.join(chunks),
            }
        )
    messages.extend(
        {"role": _ROLE_MAP[turn.role], "content": turn.content} for turn in history
    )
    messages.append({"role": "user", "content": user_message})

    return Prompt(
        persona=persona,
        context_chunks=chunks,
        history=history,
        user_message=user_message,
        messages=messages,
    )
