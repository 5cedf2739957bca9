"""
Pipeline step for gathering persona and history and building the prompt.
"""
from __future__ import annotations

import asyncio
import logging

from discord_copilot.memory.models import Turn
from discord_copilot.response.engine import PipelineContext, PipelineState, PipelineStep
from discord_copilot.response.prompt import FALLBACK_PERSONA, build_prompt, resolve_persona

logger = logging.getLogger(__name__)


class ContextAssemblyStep(PipelineStep):
    """
    Fetches persona and recent history, then renders the prompt.
    """

    state = PipelineState.ASSEMBLING

    async def run(self, context: PipelineContext) -> PipelineContext:
        persona, history = await asyncio.gather(
            self._load_persona(context),
            self._load_history(context),
        )

        prompt = build_prompt(
            persona=persona,
            context_chunks=[match.content for match in context.matches],
            history=history,
            user_message=context.user_message,
        )

        context.persona = persona
        context.history = history
        context.prompt = prompt
        context.messages = list(prompt.messages)
        return context

    async def _load_persona(self, context: PipelineContext) -> str:
        try:
            stored = await self.services.persona.get()
        except Exception as exc:
            logger.warning(
                "Persona fetch failed for channel %s (stage=%s); using fallback: %s",
                context.channel_id,
                self.state.value,
                exc,
            )
            return FALLBACK_PERSONA
        return resolve_persona(stored)

    async def _load_history(self, context: PipelineContext) -> list[Turn]:
        try:
            newest_first = await self.services.history.recent(
                context.channel_id, self.services.config.core.HISTORY_LENGTH
            )
        except Exception as exc:
            logger.warning(
                "History fetch failed for channel %s (stage=%s); continuing without history: %s",
                context.channel_id,
                self.state.value,
                exc,
            )
            return []
        return list(reversed(newest_first))
