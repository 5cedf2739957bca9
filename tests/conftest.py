import os
import sys
from pathlib import Path
from types import SimpleNamespace

import numpy as np
import pytest

# Make the shared fakes importable from nested test packages
sys.path.insert(0, str(Path(__file__).resolve().parent))

# Ensure required environment variables for load_config()
os.environ.setdefault("DISCORD_API_TOKEN", "test-token")
os.environ.setdefault("OPENAI_API_KEY", "test-openai")
os.environ.setdefault("MSG_MODEL_ID", "model")
os.environ.setdefault("EMB_DIM", "4")
os.environ.setdefault("TRACE_PIPELINE", "0")
os.environ.setdefault("SERIALIZE_CHANNELS", "0")
os.environ.setdefault("USE_LOCAL", "0")

from discord_copilot.config import load_config  # noqa: E402
from discord_copilot.memory.embeddings import to_bytes  # noqa: E402
from discord_copilot.memory.sql import db  # noqa: E402
from discord_copilot.runtime import ServiceContext  # noqa: E402


@pytest.fixture
def config():
    return load_config("does-not-exist.toml")


@pytest.fixture
def services(config):
    conn = db.connect(":memory:")
    ctx = ServiceContext.create(config, conn=conn, openai_client=SimpleNamespace())
    yield ctx
    conn.close()


@pytest.fixture
def seed(services):
    """Write rows directly, the way the dashboard and ingestion would."""

    class _Seed:
        def channel(self, channel_id):
            with services.conn:
                services.conn.execute(
                    "INSERT INTO allowed_channels(channel_id, created_at) VALUES(?, 0)",
                    (str(channel_id),),
                )

        def persona(self, content):
            with services.conn:
                services.conn.execute(
                    "INSERT INTO persona(id, content, updated_at) VALUES('system_instructions', ?, 0)",
                    (content,),
                )

        def document(self, content, embedding, doc_id=None):
            arr = np.asarray(embedding, dtype=np.float32)
            with services.conn:
                services.conn.execute(
                    "INSERT INTO documents(id, content, embedding, emb_model, emb_dim, created_at)"
                    " VALUES(?, ?, ?, 'test', ?, 0)",
                    (doc_id, content, to_bytes(arr), int(arr.size)),
                )

        def turn(self, channel_id, role, content, ts):
            with services.conn:
                services.conn.execute(
                    "INSERT INTO conversation_turns(channel_id, role, content, created_at)"
                    " VALUES(?, ?, ?, ?)",
                    (str(channel_id), role, content, ts),
                )

    return _Seed()
