from .notes_engine import NotesEngine
from .qa_engine import QAEngine

__all__ = [
    'NotesEngine',
    'QAEngine'
]
