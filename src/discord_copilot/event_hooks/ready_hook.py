import discord

from discord_copilot.runtime import ServiceContext

import logging

logger = logging.getLogger(__name__)


async def handle(client: discord.Client, services: ServiceContext):
    """Log the datastore state once the gateway session is ready."""
    logger.info(f"Logged in as {client.user.name} (ID: {client.user.id})")

    try:
        channels = await services.channels.list_all()
        documents = await services.documents.count()
    except Exception as e:
        logger.error("Datastore check failed on ready: %s", e)
        return

    if not channels:
        logger.warning("No channels are authorized; the bot will stay silent until one is added")
    logger.info(
        "Serving %d authorized channel(s) with %d knowledge chunk(s)",
        len(channels),
        documents,
    )
