"""
Process-wide service handles.

A :class:`ServiceContext` is built once at startup and handed to the
orchestrator. It owns the SQLite connection, its lock, the repositories and
the model clients; nothing else in the package holds a client of its own.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import Any

from discord_copilot.clients import oai, ollama
from discord_copilot.config import Config
from discord_copilot.memory.sql import db
from discord_copilot.memory.sql.repositories import (
    ChannelsRepo,
    DocumentsRepo,
    HistoryRepo,
    PersonaRepo,
)

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    config: Config
    conn: sqlite3.Connection
    lock: db.ConnectionLock
    channels: ChannelsRepo
    persona: PersonaRepo
    history: HistoryRepo
    documents: DocumentsRepo
    openai: Any
    local_llm: Any = None

    @classmethod
    def create(
        cls,
        config: Config,
        *,
        conn: sqlite3.Connection | None = None,
        openai_client: Any = None,
        local_client: Any = None,
        with_clients: bool = True,
    ) -> "ServiceContext":
        """
        Connect to the datastore, apply the schema and build the model clients.

        ``conn`` and the client arguments let tests inject their own handles.
        ``with_clients=False`` skips the model clients for datastore-only tools.
        """
        if conn is None:
            conn = db.connect(config.rag.SQL_DB_PATH)
            logger.info("Opened datastore at %s", config.rag.SQL_DB_PATH)
        db.migrate(conn)
        lock = db.ConnectionLock()

        if openai_client is None and with_clients:
            openai_client = oai.create_client(
                config.core.OPENAI_API_KEY, timeout=config.core.REQUEST_TIMEOUT
            )
        if local_client is None and with_clients and config.models.USE_LOCAL:
            local_client = ollama.create_client(
                config.models.LOCAL_SERVER_URL, timeout=config.core.REQUEST_TIMEOUT
            )
            logger.info("Using local model %s", config.models.LOCAL_MODEL_ID)

        return cls(
            config=config,
            conn=conn,
            lock=lock,
            channels=ChannelsRepo(conn, lock),
            persona=PersonaRepo(conn, lock),
            history=HistoryRepo(conn, lock),
            documents=DocumentsRepo(conn, lock),
            openai=openai_client,
            local_llm=local_client,
        )

    def close(self) -> None:
        """Checkpoint the WAL and close the connection."""
        try:
            db.wal_checkpoint_truncate(self.conn)
        except sqlite3.Error as exc:
            logger.warning("WAL checkpoint failed on shutdown: %s", exc)
        self.conn.close()


__all__ = ["ServiceContext"]
