import os
from pathlib import Path

_DEFAULT_SQLITE_PATH = (
    Path(__file__).resolve().parent.parent.parent.parent / "data" / "copilot.db"
)


class Rag:
    def __init__(self, config: dict | None = None) -> None:
        rag_cfg = (config or {}).get("copilot", {}).get("retrieval", {})
        self.SQL_DB_PATH: str = str(rag_cfg.get("sql_db_path", os.getenv("SQL_DB_PATH", str(_DEFAULT_SQLITE_PATH))))
        self.EMB_MODEL_ID: str = str(rag_cfg.get("emb_model_id", os.getenv("EMB_MODEL_ID", "text-embedding-3-small")))
        self.EMB_DIM: int = int(rag_cfg.get("emb_dim", os.getenv("EMB_DIM", "1536")))
        self.VECTOR_SEARCH_K: int = int(
            rag_cfg.get("vector_search_k", os.getenv("RAG_VECTOR_SEARCH_K", "3"))
        )
        self.MATCH_THRESHOLD: float = float(
            rag_cfg.get("match_threshold", os.getenv("RAG_MATCH_THRESHOLD", "0.5"))
        )
        self.CHUNK_SIZE: int = int(rag_cfg.get("chunk_size", os.getenv("RAG_CHUNK_SIZE", "500")))
