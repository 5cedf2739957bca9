"""Records read from and written to the datastore."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

Role = Literal["user", "model"]


@dataclass(frozen=True, slots=True)
class ChannelEntry:
    """Allow-list row for one channel."""

    channel_id: str
    created_at: float


@dataclass(frozen=True, slots=True)
class Turn:
    """One role-tagged message in a channel's history."""

    channel_id: str
    role: Role
    content: str
    created_at: float


@dataclass(frozen=True, slots=True)
class Match:
    """A knowledge chunk that cleared the similarity threshold."""

    id: int
    content: str
    score: float


# --- Authorization lookup outcome -----------------------------------------


@dataclass(frozen=True, slots=True)
class Found:
    entry: ChannelEntry


@dataclass(frozen=True, slots=True)
class NotFound:
    pass


@dataclass(frozen=True, slots=True)
class LookupFailed:
    cause: BaseException


LookupResult = Union[Found, NotFound, LookupFailed]


__all__ = [
    "Role",
    "ChannelEntry",
    "Turn",
    "Match",
    "Found",
    "NotFound",
    "LookupFailed",
    "LookupResult",
]
