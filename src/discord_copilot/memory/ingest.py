"""
Document ingestion
==================

Reads PDF or plain-text documents, splits them into fixed-size chunks, embeds
each chunk and stores it in the knowledge table. The reply pipeline only reads what this writes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

import fitz

from discord_copilot.clients import oai
from discord_copilot.errors import DocumentError
from discord_copilot.runtime import ServiceContext

from .embeddings import to_bytes

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IngestReport:
    total_chunks: int
    embedded_chunks: int


def chunk_text(text: str, size: int) -> List[str]:
    """Split ``text`` every ``size`` characters; blank input yields no chunks."""
    if size < 1:
        raise ValueError("chunk size must be >= 1")
    if not text.strip():
        return []
    return [text[i:i + size] for i in range(0, len(text), size)]


def read_document(path: Path) -> str:
    """
    Return the text of ``path``: PDFs page by page via PyMuPDF, anything else
    as UTF-8 text.

    Raises :class:`DocumentError` for undecodable files and files without
    text; ``OSError`` propagates for missing or unreadable paths.
    """
    try:
        if path.suffix.lower() == ".pdf":
            text = _pdf_text(path)
        else:
            text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise DocumentError(f"{path} is not UTF-8 text ({exc.reason})") from exc

    if not text.strip():
        raise DocumentError(f"{path} contains no extractable text")
    return text


def _pdf_text(path: Path) -> str:
    try:
        with fitz.open(path) as doc:
            return "\n".join(page.get_text("text") for page in doc)
    except fitz.FileDataError as exc:
        raise DocumentError(f"{path} is not a readable PDF: {exc}") from exc


async def ingest_text(services: ServiceContext, text: str) -> IngestReport:
    """
    Embed and store every chunk of ``text``.

    A chunk that fails to embed or insert is logged and skipped.
    """
    rag = services.config.rag
    chunks = chunk_text(text, rag.CHUNK_SIZE)
    logger.info("Processing %d chunk(s)...", len(chunks))

    embedded = 0
    for idx, chunk in enumerate(chunks, start=1):
        try:
            vec = await oai.embed_text(
                services.openai, chunk, model=rag.EMB_MODEL_ID, dim=rag.EMB_DIM
            )
            await services.documents.insert(chunk, to_bytes(vec), rag.EMB_MODEL_ID, int(vec.size))
        except Exception as exc:
            logger.error("Failed to ingest chunk %d/%d: %s", idx, len(chunks), exc)
            continue
        embedded += 1

    return IngestReport(total_chunks=len(chunks), embedded_chunks=embedded)


__all__ = ["IngestReport", "chunk_text", "ingest_text", "read_document"]
