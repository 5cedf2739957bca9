"""Discord bot bootstrap utilities."""

from __future__ import annotations

import logging

import discord
from discord.ext import commands as discord_commands

from discord_copilot import commands as dc_commands
from discord_copilot.event_hooks import message_hook, ready_hook
from discord_copilot.response import Orchestrator
from discord_copilot.runtime import ServiceContext

logger = logging.getLogger(__name__)


def _intents() -> discord.Intents:
    intents = discord.Intents.default()
    intents.message_content = True
    return intents


class CopilotBot(discord_commands.Bot):
    """Primary Discord bot implementation with slash command support."""

    def __init__(self, services: ServiceContext) -> None:
        super().__init__(command_prefix=discord_commands.when_mentioned, intents=_intents())
        self.services = services
        self.orchestrator = Orchestrator(services)

    async def setup_hook(self) -> None:
        """Register slash commands and synchronise with Discord."""

        await dc_commands.setup(self)

        try:
            synced = await self.tree.sync()
            logger.info("Synced %d application command(s)", len(synced))
        except Exception:
            logger.exception("Failed to sync application commands")


def create_bot(services: ServiceContext) -> CopilotBot:
    """Build the bot and attach the gateway event handlers."""

    bot = CopilotBot(services)

    @bot.event
    async def on_ready() -> None:
        await ready_hook.handle(bot, services)

    @bot.event
    async def on_message(message: discord.Message) -> None:
        await message_hook.handle(bot, bot.orchestrator, message)

    return bot


def run(services: ServiceContext) -> None:
    """Start the Discord bot; blocks until the gateway session ends."""

    token = services.config.core.DISCORD_API_TOKEN
    if not token:
        logger.error("No DISCORD_API_TOKEN configured. Cannot run client.")
        return

    bot = create_bot(services)
    try:
        bot.run(token, log_handler=None)
    except discord.LoginFailure as exc:
        logger.error("Login failed: %s", exc)
    finally:
        services.close()
