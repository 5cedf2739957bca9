"""
Repositories (SQL-only)
=======================
- No embedding logic here; pure CRUD and selects.
- Every call goes through the shared lock and runs in a worker thread.
"""

from __future__ import annotations
from typing import List, Optional, Sequence, Tuple
import asyncio
import sqlite3
import time

from .db import ConnectionLock
from ..models import ChannelEntry, Found, LookupFailed, LookupResult, NotFound, Turn

PERSONA_KEY = "system_instructions"


class ChannelsRepo:
    """Allow-list of channels permitted to trigger replies."""

    def __init__(self, conn: sqlite3.Connection, lock: ConnectionLock):
        self.conn = conn
        self._lock = lock

    async def lookup(self, channel_id: str) -> LookupResult:
        """
        Look up the allow-list entry for ``channel_id``.

        :returns: ``Found`` with the entry, ``NotFound`` when no row matches,
            or ``LookupFailed`` carrying the exception raised by the query.
        """
        sql = "SELECT channel_id, created_at FROM allowed_channels WHERE channel_id=?"

        def _query() -> Optional[sqlite3.Row]:
            return self.conn.execute(sql, (str(channel_id),)).fetchone()

        try:
            async with self._lock:
                row = await asyncio.to_thread(_query)  # blocking sqlite call
        except Exception as exc:
            return LookupFailed(exc)

        if row is None:
            return NotFound()
        return Found(ChannelEntry(channel_id=row["channel_id"], created_at=row["created_at"]))

    async def add(self, channel_id: str) -> bool:
        """
        Insert ``channel_id`` into the allow-list.

        :returns: ``True`` if a new row was added.
        """
        sql = "INSERT OR IGNORE INTO allowed_channels(channel_id, created_at) VALUES(?, ?)"

        def _run() -> bool:
            with self.conn:
                cur = self.conn.execute(sql, (str(channel_id), time.time()))
            return cur.rowcount > 0

        async with self._lock:
            return await asyncio.to_thread(_run)

    async def remove(self, channel_id: str) -> bool:
        """Delete ``channel_id`` from the allow-list; ``True`` if it was present."""
        sql = "DELETE FROM allowed_channels WHERE channel_id=?"

        def _run() -> bool:
            with self.conn:
                cur = self.conn.execute(sql, (str(channel_id),))
            return cur.rowcount > 0

        async with self._lock:
            return await asyncio.to_thread(_run)

    async def list_all(self) -> List[ChannelEntry]:
        sql = "SELECT channel_id, created_at FROM allowed_channels ORDER BY created_at"

        def _query() -> List[ChannelEntry]:
            return [
                ChannelEntry(channel_id=r["channel_id"], created_at=r["created_at"])
                for r in self.conn.execute(sql).fetchall()
            ]

        async with self._lock:
            return await asyncio.to_thread(_query)


class PersonaRepo:
    """Singleton persona instruction."""

    def __init__(self, conn: sqlite3.Connection, lock: ConnectionLock):
        self.conn = conn
        self._lock = lock

    async def get(self) -> Optional[str]:
        """Return the current persona text or ``None`` if unset."""

        def _query() -> Optional[str]:
            row = self.conn.execute(
                "SELECT content FROM persona WHERE id=?", (PERSONA_KEY,)
            ).fetchone()
            return row[0] if row else None

        async with self._lock:
            return await asyncio.to_thread(_query)

    async def set(self, content: str) -> None:
        """Upsert the persona text."""
        sql = """
            INSERT INTO persona(id, content, updated_at) VALUES(?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
              content=excluded.content,
              updated_at=excluded.updated_at
        """

        def _run():
            with self.conn:
                self.conn.execute(sql, (PERSONA_KEY, content, time.time()))

        async with self._lock:
            await asyncio.to_thread(_run)


class HistoryRepo:
    """Append-only conversation log, one stream per channel."""

    def __init__(self, conn: sqlite3.Connection, lock: ConnectionLock):
        self.conn = conn
        self._lock = lock

    async def recent(self, channel_id: str, limit: int) -> List[Turn]:
        """
        Return up to ``limit`` turns for ``channel_id``, newest first.

        Rows written in the same instant are ordered by insertion.
        """
        if limit <= 0:
            return []

        sql = """
            SELECT channel_id, role, content, created_at
            FROM conversation_turns
            WHERE channel_id=?
            ORDER BY created_at DESC, id DESC
            LIMIT ?
        """

        def _query() -> List[Turn]:
            rows = self.conn.execute(sql, (str(channel_id), limit)).fetchall()
            return [
                Turn(
                    channel_id=r["channel_id"],
                    role=r["role"],
                    content=r["content"],
                    created_at=r["created_at"],
                )
                for r in rows
            ]

        async with self._lock:
            return await asyncio.to_thread(_query)  # blocking sqlite call

    async def append_exchange(
        self, channel_id: str, user_content: str, model_content: str
    ) -> None:
        """
        Append the user turn and the model turn in one transaction.

        The model turn never sorts before the user turn.
        """
        sql = """
            INSERT INTO conversation_turns(channel_id, role, content, created_at)
            VALUES (?, ?, ?, ?)
        """

        def _run():
            now = time.time()
            with self.conn:
                self.conn.execute("BEGIN")
                self.conn.execute(sql, (str(channel_id), "user", user_content, now))
                self.conn.execute(sql, (str(channel_id), "model", model_content, now))

        async with self._lock:
            await asyncio.to_thread(_run)

    async def purge(self, channel_id: str) -> int:
        """Delete every turn for ``channel_id``; returns rows removed."""

        def _run() -> int:
            with self.conn:
                cur = self.conn.execute(
                    "DELETE FROM conversation_turns WHERE channel_id=?", (str(channel_id),)
                )
            return cur.rowcount

        async with self._lock:
            return await asyncio.to_thread(_run)


class DocumentsRepo:
    """Knowledge chunks and their stored embeddings."""

    def __init__(self, conn: sqlite3.Connection, lock: ConnectionLock):
        self.conn = conn
        self._lock = lock

    async def insert(self, content: str, embedding: bytes, model: str, dim: int) -> int:
        """
        Insert one chunk.

        :param embedding: Serialized float32 embedding blob.
        :returns: New row id.
        """
        sql = """
            INSERT INTO documents(content, embedding, emb_model, emb_dim, created_at)
            VALUES (?, ?, ?, ?, ?)
        """

        def _run() -> int:
            with self.conn:
                cur = self.conn.execute(sql, (content, embedding, model, dim, time.time()))
            return int(cur.lastrowid)

        async with self._lock:
            return await asyncio.to_thread(_run)

    async def fetch_embeddings(self) -> Sequence[Tuple[int, str, bytes]]:
        """Return ``(id, content, embedding)`` rows for similarity search."""
        sql = "SELECT id, content, embedding FROM documents ORDER BY id"

        def _query() -> list[tuple[int, str, bytes]]:
            rows = self.conn.execute(sql).fetchall()
            return [(int(r["id"]), r["content"], r["embedding"]) for r in rows]

        async with self._lock:
            return await asyncio.to_thread(_query)  # blocking sqlite call

    async def count(self) -> int:
        def _query() -> int:
            return int(self.conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0])

        async with self._lock:
            return await asyncio.to_thread(_query)
