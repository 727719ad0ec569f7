class PaperNotesError(Exception):
    """Base class for all errors raised while taking notes or answering questions"""


class InvalidPaperSourceError(PaperNotesError):
    """The paper URL or path is not an acceptable PDF source"""


class InvalidPagesError(PaperNotesError):
    """The requested pages to delete cannot be applied to the PDF"""


class PaperNotFoundError(PaperNotesError):
    """The paper has not been ingested yet"""


class PdfProcessingError(PaperNotesError):
    """Fetching, editing or reading the PDF failed"""


class EmbeddingError(PaperNotesError):
    """The embedding model could not embed the given text"""


class LLMError(PaperNotesError):
    """The language model call failed or returned an unusable response"""


class StorageError(PaperNotesError):
    """Reading or writing persisted papers, answers or vectors failed"""
