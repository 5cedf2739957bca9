"""
Pipeline step for response generation.
"""
from __future__ import annotations

import contextlib
import logging

from discord_copilot.clients import oai, ollama
from discord_copilot.errors import GenerationError, PipelineAbort
from discord_copilot.response.engine import PipelineContext, PipelineState, PipelineStep

logger = logging.getLogger(__name__)


class GenerationStep(PipelineStep):
    """
    Makes exactly one model call. Any failure aborts the cycle and asks the
    orchestrator to post the generic failure notice.
    """

    state = PipelineState.GENERATING

    async def run(self, context: PipelineContext) -> PipelineContext:
        async with contextlib.AsyncExitStack() as stack:
            # Typing is best effort.
            try:
                await stack.enter_async_context(context.channel.typing())
            except Exception as exc:
                logger.warning(
                    "Typing indicator failed for channel %s (stage=%s): %r",
                    context.channel_id,
                    self.state.value,
                    exc,
                )

            try:
                text = await self._generate(context.messages)
            except Exception as exc:
                logger.error(
                    "Generation failed for channel %s (stage=%s): %r",
                    context.channel_id,
                    self.state.value,
                    exc,
                )
                raise PipelineAbort("generation failed", notify_user=True) from exc

        context.response_text = text
        return context

    async def _generate(self, messages: list[dict]) -> str:
        models = self.services.config.models
        if models.USE_LOCAL and self.services.local_llm is not None:
            text = await ollama.chat(
                self.services.local_llm, messages, model=models.LOCAL_MODEL_ID
            )
        else:
            text = await oai.chat(self.services.openai, messages, model=models.MSG_MODEL_ID)

        if not text:
            raise GenerationError("model returned an empty response")
        return text
