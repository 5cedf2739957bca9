"""
SQLite connection, schema and lock
==================================

One connection is shared by every repository. Statements run in worker
threads (``asyncio.to_thread``) and are serialised by a :class:`ConnectionLock`.
``:memory:`` is accepted for tests.
"""

from __future__ import annotations

import asyncio
import pathlib
import sqlite3


class ConnectionLock:
    """
    Async mutex over the shared connection.

    An ``asyncio.Lock`` belongs to the event loop that first waits on it, but
    the connection outlives any single loop (each CLI command and test calls
    ``asyncio.run``). The underlying lock is therefore created per running loop.
    """

    def __init__(self) -> None:
        self._lock: asyncio.Lock | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def _for_running_loop(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._lock is None or self._loop is not loop:
            self._lock = asyncio.Lock()
            self._loop = loop
        return self._lock

    async def __aenter__(self) -> None:
        await self._for_running_loop().acquire()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self._for_running_loop().release()

    def locked(self) -> bool:
        return self._lock is not None and self._lock.locked()


def connect(path: str) -> sqlite3.Connection:
    if path != ":memory:":
        pathlib.Path(path).parent.mkdir(parents=True, exist_ok=True)

    # isolation_level=None: transactions are opened explicitly by the repositories.
    conn = sqlite3.connect(path, isolation_level=None, check_same_thread=False)

    # journal_mode has to be switched before the tuning pragmas take effect.
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA foreign_keys=ON;")
    conn.execute("PRAGMA temp_store=MEMORY;")
    # The operator CLI may write while the bot is running.
    conn.execute("PRAGMA busy_timeout=3000;")

    conn.row_factory = sqlite3.Row
    return conn


def migrate(conn: sqlite3.Connection) -> None:
    """Apply ``schema.sql``; safe to run on every start."""
    schema = pathlib.Path(__file__).with_name("schema.sql").read_text(encoding="utf-8")
    with conn:
        conn.executescript(schema)


def wal_checkpoint_truncate(conn: sqlite3.Connection) -> None:
    """Fold the WAL back into the main file and truncate it (used on shutdown)."""
    conn.execute("PRAGMA wal_checkpoint(TRUNCATE);")
