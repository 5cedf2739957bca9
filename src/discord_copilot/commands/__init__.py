"""
Slash command cogs.

Modules under ``commands/handlers`` register their cog with
:func:`register_cog`; importing this package imports every handler module, and
:func:`setup` adds the collected cogs to a bot during ``setup_hook``.
"""

from __future__ import annotations

import logging
from importlib import import_module
from pathlib import Path
from pkgutil import iter_modules
from typing import Type

from discord.ext import commands as commands_ext

logger = logging.getLogger(__name__)

_COGS: dict[str, Type[commands_ext.Cog]] = {}


def register_cog(cog_cls: Type[commands_ext.Cog]) -> Type[commands_ext.Cog]:
    """Class decorator; the cog is attached on the next :func:`setup` call."""

    if not issubclass(cog_cls, commands_ext.Cog):
        raise TypeError(f"{cog_cls!r} is not a discord.ext.commands.Cog")
    _COGS.setdefault(cog_cls.__name__, cog_cls)
    return cog_cls


def registered_cogs() -> list[str]:
    return sorted(_COGS)


async def setup(bot: commands_ext.Bot) -> None:
    added = 0
    for name, cog_cls in _COGS.items():
        if bot.get_cog(name) is not None:
            continue
        await bot.add_cog(cog_cls(bot))
        added += 1
    logger.info("Attached %d command cog(s): %s", added, ", ".join(registered_cogs()))


def _discover() -> None:
    handlers = Path(__file__).resolve().parent / "handlers"
    for module in iter_modules([str(handlers)]):
        if not module.name.startswith("_"):
            import_module(f"{__name__}.handlers.{module.name}")


_discover()

__all__ = ["register_cog", "registered_cogs", "setup"]
