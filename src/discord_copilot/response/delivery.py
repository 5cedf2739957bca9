"""Split replies to fit the platform message limit and send them in order."""

from __future__ import annotations

import logging
from typing import Any, List

logger = logging.getLogger(__name__)

DISCORD_MESSAGE_LIMIT = 2000


def split_message(text: str, limit: int = DISCORD_MESSAGE_LIMIT) -> List[str]:
    """
    Greedy fixed-width split of ``text`` into segments of at most ``limit`` characters.

    Text that already fits (including the empty string) comes back as a single
    segment. Boundaries may fall mid-word.
    """
    if limit < 1:
        raise ValueError("limit must be >= 1")
    if len(text) <= limit:
        return [text]
    return [text[i:i + limit] for i in range(0, len(text), limit)]


async def send_segments(channel: Any, segments: List[str]) -> int:
    """
    Send ``segments`` to ``channel`` in order.

    Stops at the first failed send. Segments already sent stay sent.

    :returns: Number of segments delivered.
    """
    sent = 0
    for idx, segment in enumerate(segments, start=1):
        try:
            await channel.send(segment)
        except Exception as exc:
            logger.error(
                "Delivery failed on segment %d/%d for channel %s: %s",
                idx,
                len(segments),
                getattr(channel, "id", "unknown"),
                exc,
            )
            break
        sent += 1
    return sent


__all__ = ["DISCORD_MESSAGE_LIMIT", "split_message", "send_segments"]
