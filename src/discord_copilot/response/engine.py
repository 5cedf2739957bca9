"""
Core engine for the reply pipeline.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TYPE_CHECKING

from discord_copilot.errors import PipelineAbort

if TYPE_CHECKING:
    from discord_copilot.memory.models import Match, Turn
    from discord_copilot.response.prompt import Prompt
    from discord_copilot.response.tracer import PipelineTracer
    from discord_copilot.runtime import ServiceContext

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    GATED = "gated"
    RETRIEVING = "retrieving"
    ASSEMBLING = "assembling"
    GENERATING = "generating"
    DELIVERING = "delivering"
    PERSISTING = "persisting"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class PipelineContext:
    """
    Holds the state of one reply cycle.
    """
    # The raw Discord message that triggered the pipeline.
    discord_message: Any  # Typed as Any to avoid importing discord here

    channel_id: str = ""
    user_message: str = ""

    state: PipelineState = PipelineState.IDLE

    # Knowledge chunks ranked by similarity. Populated by RetrievalStep.
    matches: list[Match] = field(default_factory=list)

    # Persona text (fallback applied) and chronological history.
    # Populated by ContextAssemblyStep.
    persona: str = ""
    history: list[Turn] = field(default_factory=list)
    prompt: Prompt | None = None

    # The message list sent to the model.
    messages: list[dict[str, Any]] = field(default_factory=list)

    # Full generated text, independent of how much of it was delivered.
    response_text: str = ""
    segments_total: int = 0
    segments_sent: int = 0

    persisted: bool = False
    abort_reason: str | None = None
    notify_user: bool = False

    step_metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def channel(self) -> Any:
        return self.discord_message.channel

    @classmethod
    def from_message(cls, message: Any) -> "PipelineContext":
        return cls(
            discord_message=message,
            channel_id=str(message.channel.id),
            user_message=message.content or "",
        )


class PipelineStep(ABC):
    """
    Abstract base class for a single step in the pipeline.

    ``state`` is the pipeline state the step runs in.
    """

    state: PipelineState

    def __init__(self, services: ServiceContext) -> None:
        self.services = services

    @abstractmethod
    async def run(self, context: PipelineContext) -> PipelineContext:
        """
        Execute the step logic.

        Raise :class:`PipelineAbort` to end the cycle.

        Args:
            context: The current pipeline context.

        Returns:
            The updated pipeline context.
        """
        pass


class ResponsePipeline:
    """
    Orchestrates the execution of pipeline steps.
    """

    def __init__(self, steps: list[PipelineStep], tracer: PipelineTracer | None = None):
        self.steps = steps
        self.tracer = tracer

    async def run(self, context: PipelineContext) -> PipelineContext:
        """
        Run all steps in order.

        The returned context ends in ``DONE`` or ``ABORTED``.
        """
        current_context = context
        self._capture("Start", current_context)

        for i, step in enumerate(self.steps):
            step_name = step.__class__.__name__
            current_context.state = step.state
            logger.debug(
                "Running pipeline step %d: %s (channel %s)",
                i + 1,
                step_name,
                current_context.channel_id,
            )

            try:
                current_context = await step.run(current_context)
            except PipelineAbort as abort:
                current_context.state = PipelineState.ABORTED
                current_context.abort_reason = abort.reason
                current_context.notify_user = abort.notify_user
                logger.log(
                    logging.INFO if abort.notify_user else logging.DEBUG,
                    "Pipeline aborted at %s for channel %s: %s",
                    step_name,
                    current_context.channel_id,
                    abort.reason,
                )
                self._capture(step_name, current_context)
                return current_context
            except Exception as e:
                logger.error("Pipeline step %s failed: %s", step_name, e)
                raise

            self._capture(step_name, current_context)

        current_context.state = PipelineState.DONE
        if self.tracer is not None:
            self.tracer.finish(current_context)
        return current_context

    def _capture(self, step_name: str, context: PipelineContext) -> None:
        if self.tracer is not None:
            self.tracer.capture(step_name, context)
