"""
Pipeline step that pulls relevant knowledge chunks for the incoming message.
"""
from __future__ import annotations

import logging

from discord_copilot.clients import oai
from discord_copilot.memory.search import similarity_search
from discord_copilot.response.engine import PipelineContext, PipelineState, PipelineStep

logger = logging.getLogger(__name__)


class RetrievalStep(PipelineStep):
    """
    Embeds the message and runs a similarity search.

    Any failure leaves ``context.matches`` empty; the cycle carries on
    without supporting context.
    """

    state = PipelineState.RETRIEVING

    async def run(self, context: PipelineContext) -> PipelineContext:
        rag = self.services.config.rag

        try:
            query = await oai.embed_text(
                self.services.openai,
                context.user_message,
                model=rag.EMB_MODEL_ID,
                dim=rag.EMB_DIM,
            )
        except Exception as exc:
            logger.warning(
                "Embedding failed for channel %s (stage=%s); continuing without context: %s",
                context.channel_id,
                self.state.value,
                exc,
            )
            context.step_metadata["retrieval"] = "embedding_failed"
            return context

        try:
            matches = await similarity_search(
                self.services.documents,
                query,
                k=rag.VECTOR_SEARCH_K,
                threshold=rag.MATCH_THRESHOLD,
            )
        except Exception as exc:
            logger.warning(
                "Similarity search failed for channel %s (stage=%s); continuing without context: %s",
                context.channel_id,
                self.state.value,
                exc,
            )
            context.step_metadata["retrieval"] = "search_failed"
            return context

        context.matches = matches
        context.step_metadata["retrieval"] = "ok"
        logger.debug(
            "Retrieved %d chunk(s) for channel %s (scores=%s)",
            len(matches),
            context.channel_id,
            [round(m.score, 3) for m in matches],
        )
        return context
