"""
Debug tracer for the reply pipeline.

Each reply cycle gets a :class:`PipelineTracer`. The pipeline calls
:meth:`PipelineTracer.capture` after every step and :meth:`finish` once the
cycle reaches ``DONE`` or ``ABORTED``; the trace of the latest cycle is kept in
``data/runtime/pipeline_trace.json``.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from discord_copilot.response.engine import PipelineContext

logger = logging.getLogger(__name__)

TRACE_FILE = Path("data/runtime/pipeline_trace.json")


@dataclass(slots=True)
class StepSnapshot:
    step: str
    state: str
    latency_ms: float
    elapsed_ms: float
    match_scores: list[float]
    history_turns: int
    message_count: int
    metadata: dict[str, Any] = field(default_factory=dict)
    response_chars: int | None = None
    segments: str | None = None
    abort_reason: str | None = None

    @classmethod
    def of(cls, step: str, context: PipelineContext, latency_ms: float, elapsed_ms: float) -> "StepSnapshot":
        snap = cls(
            step=step,
            state=context.state.value,
            latency_ms=round(latency_ms, 2),
            elapsed_ms=round(elapsed_ms, 2),
            match_scores=[round(m.score, 4) for m in context.matches],
            history_turns=len(context.history),
            message_count=len(context.messages),
            metadata=dict(context.step_metadata),
            abort_reason=context.abort_reason,
        )
        if context.response_text:
            snap.response_chars = len(context.response_text)
            snap.segments = f"{context.segments_sent}/{context.segments_total}"
        return snap


class PipelineTracer:
    """Collects step snapshots for one cycle and rewrites the trace file."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or TRACE_FILE
        self.snapshots: list[StepSnapshot] = []
        self._started = time.perf_counter()
        self._last = self._started
        self.trace_id = f"trace_{time.time_ns() // 1_000_000}"

    def capture(self, step_name: str, context: PipelineContext) -> None:
        now = time.perf_counter()
        self.snapshots.append(
            StepSnapshot.of(
                step_name,
                context,
                latency_ms=(now - self._last) * 1000,
                elapsed_ms=(now - self._started) * 1000,
            )
        )
        self._last = now
        self._write(context)

    def finish(self, context: PipelineContext) -> None:
        """Record the terminal state of the cycle."""
        self._write(context)

    def _write(self, context: PipelineContext) -> None:
        payload = {
            "trace_id": self.trace_id,
            "channel_id": context.channel_id,
            "total_latency_ms": round((time.perf_counter() - self._started) * 1000, 2),
            "final_state": context.state.value,
            "final_response": context.response_text,
            "steps": [
                {k: v for k, v in asdict(snap).items() if v is not None}
                for snap in self.snapshots
            ],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to write pipeline trace to %s: %s", self.path, exc)


__all__ = ["PipelineTracer", "StepSnapshot", "TRACE_FILE"]
