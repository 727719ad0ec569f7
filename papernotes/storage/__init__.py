from .. import config
from ..embeddings import get_embeddings
from .base import PaperStore
from .local_store import LocalPaperStore
from .milvus_store import MilvusPaperStore


def get_store(embeddings=None) -> PaperStore:
    """Build the paper store selected by VECTOR_BACKEND"""
    embeddings = embeddings or get_embeddings()
    backend = config.VECTOR_BACKEND.lower()
    if backend == "local":
        return LocalPaperStore(embeddings)
    if backend == "milvus":
        return MilvusPaperStore(embeddings)
    raise ValueError(f"Unknown VECTOR_BACKEND: {config.VECTOR_BACKEND}")


__all__ = [
    'PaperStore',
    'LocalPaperStore',
    'MilvusPaperStore',
    'get_store'
]
