"""Entry-point for generating replies."""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import Any

from discord_copilot.response.engine import (
    PipelineContext,
    PipelineState,
    PipelineStep,
    ResponsePipeline,
)
from discord_copilot.response.steps.context import ContextAssemblyStep
from discord_copilot.response.steps.delivery import DeliveryStep
from discord_copilot.response.steps.gate import AuthorizationStep
from discord_copilot.response.steps.generation import GenerationStep
from discord_copilot.response.steps.persist import PersistStep
from discord_copilot.response.steps.retrieval import RetrievalStep
from discord_copilot.response.tracer import PipelineTracer
from discord_copilot.runtime import ServiceContext

logger = logging.getLogger(__name__)


class Orchestrator:
    """
    Runs one reply pipeline per inbound message.

    Instances for different channels never share mutable state. With
    ``SERIALIZE_CHANNELS`` enabled, instances for the same channel run one at
    a time.
    """

    def __init__(self, services: ServiceContext) -> None:
        self.services = services
        self._channel_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def build_steps(self) -> list[PipelineStep]:
        return [
            AuthorizationStep(self.services),
            RetrievalStep(self.services),
            ContextAssemblyStep(self.services),
            GenerationStep(self.services),
            DeliveryStep(self.services),
            PersistStep(self.services),
        ]

    async def handle(self, message: Any) -> PipelineContext:
        """Run the pipeline for ``message`` and return the final context."""

        context = PipelineContext.from_message(message)

        if not self.services.config.core.SERIALIZE_CHANNELS:
            return await self._run(context)

        lock = self._channel_lock(context.channel_id)
        async with lock:
            return await self._run(context)

    def _channel_lock(self, channel_id: str) -> asyncio.Lock:
        lock = self._channel_locks.get(channel_id)
        if lock is None:
            lock = asyncio.Lock()
            self._channel_locks[channel_id] = lock
        return lock

    async def _run(self, context: PipelineContext) -> PipelineContext:
        tracer = PipelineTracer() if self.services.config.core.TRACE_PIPELINE else None
        pipeline = ResponsePipeline(self.build_steps(), tracer=tracer)

        context = await pipeline.run(context)

        if context.state is PipelineState.ABORTED:
            if context.notify_user:
                await self._send_failure_notice(context)
            return context

        logger.info(
            "Replied in channel %s (%d/%d segment(s) sent, persisted=%s, context_chunks=%d)",
            context.channel_id,
            context.segments_sent,
            context.segments_total,
            context.persisted,
            len(context.matches),
        )
        return context

    async def _send_failure_notice(self, context: PipelineContext) -> None:
        try:
            await context.channel.send(self.services.config.core.FAILURE_NOTICE)
        except Exception as exc:
            logger.error(
                "Failed to send failure notice to channel %s: %r", context.channel_id, exc
            )


__all__ = ["Orchestrator"]
