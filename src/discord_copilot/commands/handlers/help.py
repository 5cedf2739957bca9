from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from .. import register_cog


@register_cog
class Help(commands.Cog):
    """Describe what the bot does and which commands it has."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name="help", description="How to talk to the bot.")
    async def help(self, interaction: discord.Interaction) -> None:
        lines = [
            "I reply to every message in channels I've been enabled for.",
            "Commands:",
        ]
        for cmd in sorted(self.bot.tree.get_commands(), key=lambda c: c.name):
            lines.append(f"- /{cmd.name}: {cmd.description}")
        await interaction.response.send_message("\n".join(lines), ephemeral=True)
