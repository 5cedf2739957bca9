"""
Pipeline step that posts the generated reply to the origin channel.
"""
from __future__ import annotations

import logging

from discord_copilot.response.delivery import send_segments, split_message
from discord_copilot.response.engine import PipelineContext, PipelineState, PipelineStep

logger = logging.getLogger(__name__)


class DeliveryStep(PipelineStep):
    """
    Sends the reply in platform-sized segments. A failed send stops delivery
    but never aborts the cycle.
    """

    state = PipelineState.DELIVERING

    async def run(self, context: PipelineContext) -> PipelineContext:
        segments = split_message(
            context.response_text, self.services.config.core.MAX_MESSAGE_LENGTH
        )
        context.segments_total = len(segments)
        context.segments_sent = await send_segments(context.channel, segments)

        if context.segments_sent < context.segments_total:
            logger.warning(
                "Partial delivery for channel %s (stage=%s): %d/%d segment(s) sent",
                context.channel_id,
                self.state.value,
                context.segments_sent,
                context.segments_total,
            )
        return context
