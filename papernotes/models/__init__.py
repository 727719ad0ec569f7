# Import all models
from .note import Note
from .paper_record import PaperRecord
from .qa_record import QARecord
from .qa_response import QAResponse
from .take_notes_request import TakeNotesRequest
from .qa_request import QARequest

# Export all models
__all__ = [
    'Note',
    'PaperRecord',
    'QARecord',
    'QAResponse',
    'TakeNotesRequest',
    'QARequest'
]
