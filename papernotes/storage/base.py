from abc import ABC, abstractmethod
from typing import List, Optional

from langchain_core.documents import Document

from ..models import PaperRecord, QARecord


class PaperStore(ABC):
    """
    Persistence for papers, their vector index and their answered questions.

    Records are create-once / read-many: adding a paper or an index that is
    already present leaves the stored copy untouched.
    """

    def __init__(self, embeddings):
        self.embeddings = embeddings

    @abstractmethod
    def get_paper(self, url: str) -> Optional[PaperRecord]:
        """Return the stored paper for this URL, or None"""

    @abstractmethod
    def add_paper(self, record: PaperRecord, documents: List[Document]) -> None:
        """Index the paper's chunks and store its record"""

    @abstractmethod
    def has_index(self, url: str) -> bool:
        """Whether chunks for this paper have been indexed"""

    @abstractmethod
    def similarity_search(self, url: str, query: str, k: int = 4) -> List[Document]:
        """Return the k chunks of this paper closest to the query"""

    @abstractmethod
    def find_qa(self, url: str, question: str) -> Optional[QARecord]:
        """Return a previous answer to exactly this question on this paper, or None"""

    @abstractmethod
    def save_qa(self, url: str, record: QARecord) -> None:
        """Store an answered question"""
