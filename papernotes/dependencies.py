from functools import lru_cache

from .llm_processor import LLMProcessor
from .rag import NotesEngine, QAEngine
from .storage import PaperStore, get_store


@lru_cache()
def get_paper_store() -> PaperStore:
    return get_store()


@lru_cache()
def get_llm_processor() -> LLMProcessor:
    return LLMProcessor()


def get_notes_engine() -> NotesEngine:
    """Helper function to build the notes engine for a request"""
    return NotesEngine(get_paper_store(), get_llm_processor())


def get_qa_engine() -> QAEngine:
    """Helper function to build the QA engine for a request"""
    return QAEngine(get_paper_store(), get_llm_processor())
