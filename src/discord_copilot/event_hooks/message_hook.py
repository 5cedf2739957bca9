import logging

import discord

from discord_copilot.response import Orchestrator

logger = logging.getLogger(__name__)


async def handle(client: discord.Client, orchestrator: Orchestrator, message: discord.Message):
    """Handle incoming Discord messages."""

    # 1) Never answer ourselves or other bots
    author = message.author
    bot_user = client.user
    if getattr(author, "bot", False) or (bot_user is not None and author.id == bot_user.id):
        return

    # 2) Attachment-only and blank messages carry nothing to answer
    if not (message.content or "").strip():
        logger.debug("Skipping message %s without text content", message.id)
        return

    logger.debug(
        "New message received in channel %s (ID: %s)",
        getattr(message.channel, "name", None) or message.channel.__class__.__name__,
        getattr(message.channel, "id", "unknown"),
    )

    # 3) Run the reply pipeline
    try:
        await orchestrator.handle(message)
    except Exception:
        logger.exception(
            "Reply pipeline crashed for message %s in channel %s",
            message.id,
            getattr(message.channel, "id", "unknown"),
        )
