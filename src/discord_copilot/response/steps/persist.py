"""
Pipeline step that records the exchange in the conversation log.
"""
from __future__ import annotations

import logging

from discord_copilot.response.engine import PipelineContext, PipelineState, PipelineStep

logger = logging.getLogger(__name__)


class PersistStep(PipelineStep):
    """
    Appends the user turn and the full model reply. Best effort.
    """

    state = PipelineState.PERSISTING

    async def run(self, context: PipelineContext) -> PipelineContext:
        try:
            await self.services.history.append_exchange(
                context.channel_id, context.user_message, context.response_text
            )
        except Exception as exc:
            logger.error(
                "Failed to persist exchange for channel %s (stage=%s): %r",
                context.channel_id,
                self.state.value,
                exc,
            )
            return context

        context.persisted = True
        return context
