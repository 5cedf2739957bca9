"""
Pipeline step that checks the origin channel against the allow-list.
"""
from __future__ import annotations

import logging

from discord_copilot.errors import PipelineAbort
from discord_copilot.memory.models import Found, LookupFailed, NotFound
from discord_copilot.response.engine import PipelineContext, PipelineState, PipelineStep

logger = logging.getLogger(__name__)


class AuthorizationStep(PipelineStep):
    """
    Ends the cycle silently unless the channel has an allow-list entry.
    """

    state = PipelineState.GATED

    async def run(self, context: PipelineContext) -> PipelineContext:
        result = await self.services.channels.lookup(context.channel_id)

        if isinstance(result, Found):
            return context

        if isinstance(result, NotFound):
            logger.debug("Channel %s is not authorized; ignoring message", context.channel_id)
            raise PipelineAbort("channel not authorized")

        if isinstance(result, LookupFailed):
            logger.error(
                "Authorization lookup failed for channel %s (stage=%s): %r",
                context.channel_id,
                self.state.value,
                result.cause,
            )
            raise PipelineAbort("authorization lookup failed")

        raise TypeError(f"Unexpected lookup result {result!r}")
