import hashlib
import json
import logging
import os
import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import faiss
import numpy as np
from langchain_core.documents import Document

from .. import config
from ..errors import StorageError
from ..models import PaperRecord, QARecord
from .base import PaperStore

logger = logging.getLogger(__name__)

INDEX_FILE = "index.faiss"
DOCSTORE_FILE = "docstore.json"
CONFIG_FILE = "config.json"
PAPER_FILE = "data.json"
QA_FILE = "qa_data.json"

HNSW_M = 32
HNSW_EF_CONSTRUCTION = 64
HNSW_EF_SEARCH = 64


def storage_key(url: str) -> str:
    """
    Directory name for a paper: the PDF file stem plus a short hash of the URL,
    so different papers sharing a file name get separate directories.
    """
    stem = os.path.splitext(os.path.basename(urlparse(url).path or url))[0]
    stem = re.sub(r"[^\w.-]", "_", stem) or "paper"
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:10]
    return f"{stem}-{digest}"


def _to_matrix(vectors: List[List[float]]) -> np.ndarray:
    matrix = np.array(vectors, dtype="float32")
    if matrix.ndim == 1:
        matrix = matrix.reshape(1, -1)
    # Inner product over unit vectors is cosine similarity
    faiss.normalize_L2(matrix)
    return matrix


class LocalPaperStore(PaperStore):
    """
    Paper store kept on the local filesystem.

    Layout under root_dir:
        papers/<key>/data.json        list of {url: paper record}
        papers/<key>/qa_data.json     list of answered questions
        vector_store/<key>/           faiss HNSW index, chunk texts, index config
    """

    def __init__(self, embeddings, root_dir: str = None):
        super().__init__(embeddings)
        self.root_dir = root_dir or config.STORAGE_DIR
        os.makedirs(os.path.join(self.root_dir, "papers"), exist_ok=True)
        os.makedirs(os.path.join(self.root_dir, "vector_store"), exist_ok=True)
        logger.info(f"Local paper store initialized at {self.root_dir}")

    # Paths

    def paper_dir(self, url: str) -> str:
        return os.path.join(self.root_dir, "papers", storage_key(url))

    def vector_store_dir(self, url: str) -> str:
        return os.path.join(self.root_dir, "vector_store", storage_key(url))

    # JSON helpers

    def _read_json_list(self, path: str) -> List[Any]:
        if not os.path.exists(path):
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()
            if not content.strip():
                return []
            data = json.loads(content)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading {path}: {e}")
            raise StorageError(f"Could not read {path}") from e

        if not isinstance(data, list):
            raise StorageError(f"Expected a JSON array in {path}")
        return data

    def _write_json(self, path: str, data: Any) -> None:
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"Error writing {path}: {e}")
            raise StorageError(f"Could not write {path}") from e

    # Papers

    def get_paper(self, url: str) -> Optional[PaperRecord]:
        entries = self._read_json_list(os.path.join(self.paper_dir(url), PAPER_FILE))
        for entry in entries:
            if isinstance(entry, dict) and url in entry:
                logger.info(f"Retrieved paper from local storage: {url}")
                return PaperRecord.model_validate(entry[url])
        return None

    def add_paper(self, record: PaperRecord, documents: List[Document]) -> None:
        # Index first so a stored record always has a searchable index behind it
        self._save_index(record.url, documents)

        path = os.path.join(self.paper_dir(record.url), PAPER_FILE)
        entries = self._read_json_list(path)
        if any(isinstance(entry, dict) and record.url in entry for entry in entries):
            logger.info(f"Paper already saved in local storage: {record.url}")
            return

        entries.append({record.url: record.model_dump(by_alias=True)})
        self._write_json(path, entries)
        logger.info(f"Saved paper to local storage: {record.url}")

    # Vector index

    def has_index(self, url: str) -> bool:
        return os.path.exists(os.path.join(self.vector_store_dir(url), INDEX_FILE))

    def _save_index(self, url: str, documents: List[Document]) -> None:
        directory = self.vector_store_dir(url)
        if self.has_index(url):
            logger.info(f"Vector store already exists for {url}, keeping it")
            return
        if not documents:
            raise StorageError("No documents to index")

        vectors = _to_matrix(self.embeddings.embed_documents([doc.page_content for doc in documents]))
        dim = vectors.shape[1]

        index = faiss.IndexHNSWFlat(dim, HNSW_M, faiss.METRIC_INNER_PRODUCT)
        index.hnsw.efConstruction = HNSW_EF_CONSTRUCTION
        index.hnsw.efSearch = HNSW_EF_SEARCH
        index.add(vectors)

        docstore = [{"page_content": doc.page_content, "metadata": doc.metadata} for doc in documents]
        index_config = {
            "model_name": self.embeddings.model_name,
            "dim": dim,
            "num_chunks": len(documents),
        }

        os.makedirs(directory, exist_ok=True)
        self._write_json(os.path.join(directory, DOCSTORE_FILE), docstore)
        self._write_json(os.path.join(directory, CONFIG_FILE), index_config)
        # Written last: its presence marks the store as complete
        faiss.write_index(index, os.path.join(directory, INDEX_FILE))
        logger.info(f"Saved vector store ({index.ntotal} vectors) to {directory}")

    def _load_index_config(self, directory: str) -> Dict[str, Any]:
        try:
            with open(os.path.join(directory, CONFIG_FILE), "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Could not read vector store config in {directory}") from e

    def similarity_search(self, url: str, query: str, k: int = 4) -> List[Document]:
        if not self.has_index(url):
            return []

        directory = self.vector_store_dir(url)
        index_config = self._load_index_config(directory)
        query_vector = _to_matrix([self.embeddings.embed_query(query)])

        if query_vector.shape[1] != index_config["dim"]:
            raise StorageError(
                f"Embedding dim {query_vector.shape[1]} != saved dim {index_config['dim']}. "
                f"Use model: {index_config['model_name']}"
            )

        index = faiss.read_index(os.path.join(directory, INDEX_FILE))
        docstore = self._read_json_list(os.path.join(directory, DOCSTORE_FILE))

        limit = min(k, index.ntotal)
        if limit == 0:
            return []
        scores, indices = index.search(query_vector, limit)

        results = []
        for score, idx in zip(scores[0], indices[0]):
            if idx == -1:  # faiss returns -1 for unfilled slots
                continue
            entry = docstore[idx]
            metadata = dict(entry.get("metadata", {}))
            metadata["score"] = float(score)
            results.append(Document(page_content=entry["page_content"], metadata=metadata))

        logger.info(f"Fetched {len(results)} relevant documents for {url}")
        return results

    # Questions and answers

    def find_qa(self, url: str, question: str) -> Optional[QARecord]:
        entries = self._read_json_list(os.path.join(self.paper_dir(url), QA_FILE))
        for entry in entries:
            if isinstance(entry, dict) and entry.get("question") == question:
                return QARecord.model_validate(entry)
        return None

    def save_qa(self, url: str, record: QARecord) -> None:
        path = os.path.join(self.paper_dir(url), QA_FILE)
        entries = self._read_json_list(path)
        entries.append(record.model_dump(by_alias=True))
        self._write_json(path, entries)
        logger.info(f"Saved question and answer to local storage for {url}")
