"""Exception types shared across the reply pipeline."""

from __future__ import annotations


class CopilotError(Exception):
    """Base class for application errors."""


class EmbeddingError(CopilotError):
    """The embedding service failed or returned an unusable vector."""


class GenerationError(CopilotError):
    """The generative model failed or returned no usable text."""


class DocumentError(CopilotError):
    """A document handed to ingestion has no readable text."""


class PipelineAbort(CopilotError):
    """
    Raised by a pipeline step to end the cycle early.

    ``notify_user`` decides whether the orchestrator posts the generic
    failure notice to the origin channel.
    """

    def __init__(self, reason: str, *, notify_user: bool = False) -> None:
        super().__init__(reason)
        self.reason = reason
        self.notify_user = notify_user


__all__ = ["CopilotError", "DocumentError", "EmbeddingError", "GenerationError", "PipelineAbort"]
