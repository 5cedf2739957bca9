"""Application configuration"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .loader import load_raw_config
from .core import Core
from .rag import Rag
from .models import Models

load_dotenv()

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(format=LOG_FORMAT, datefmt=DATE_FORMAT, level=logging.INFO)
logging.getLogger("httpx").setLevel(logging.WARNING)


@dataclass(slots=True)
class Config:
    core: Core
    rag: Rag
    models: Models

    def validate(self, *, discord: bool = True, openai: bool = True, model: bool = True) -> None:
        """
        Raise ``ValueError`` naming every missing credential the caller needs.

        The bot needs all of them; ingestion only needs the OpenAI key and
        datastore-only commands need none.
        """
        missing = self.core.missing(discord=discord, openai=openai)
        if model:
            missing += self.models.missing()
        if missing:
            raise ValueError(f"Missing environment variables: {', '.join(missing)}")


def load_config(path: str | Path | None = None, *, validate: bool = True) -> Config:
    """Build every config section from ``config.toml`` and the environment."""

    raw = load_raw_config(path)
    config = Config(core=Core(raw), rag=Rag(raw), models=Models(raw))
    if validate:
        config.validate()
    return config


__all__ = ["Config", "Core", "Rag", "Models", "load_config"]
