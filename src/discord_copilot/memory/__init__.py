"""
Datastore access for the reply pipeline
=======================================

Import from here::

    from discord_copilot.memory import HistoryRepo, similarity_search, ...
"""

from .models import (
    ChannelEntry,
    Found,
    LookupFailed,
    LookupResult,
    Match,
    NotFound,
    Turn,
)
from .search import similarity_search
from .sql.repositories import ChannelsRepo, DocumentsRepo, HistoryRepo, PersonaRepo

__all__ = [
    "ChannelEntry",
    "Found",
    "LookupFailed",
    "LookupResult",
    "Match",
    "NotFound",
    "Turn",
    "similarity_search",
    "ChannelsRepo",
    "DocumentsRepo",
    "HistoryRepo",
    "PersonaRepo",
]
