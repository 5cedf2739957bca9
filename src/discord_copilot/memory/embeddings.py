"""
Embedding serialization
=======================

Embeddings are stored as raw float32 bytes.
"""

from __future__ import annotations
import numpy as np


def to_bytes(vec: np.ndarray) -> bytes:
    """Serialize an embedding array to raw bytes."""
    return np.asarray(vec, dtype=np.float32).tobytes()


def from_bytes(blob: bytes) -> np.ndarray:
    """Deserialize raw bytes into a ``np.ndarray`` embedding."""
    return np.frombuffer(blob, dtype=np.float32)
