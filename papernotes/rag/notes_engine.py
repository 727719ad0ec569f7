import logging
from typing import List, Optional

from .. import pdf_processor
from ..errors import PaperNotesError
from ..llm_processor import LLMProcessor
from ..models import Note, PaperRecord
from ..storage import PaperStore

logger = logging.getLogger(__name__)


class NotesEngine:
    """
    Takes notes on academic papers.

    This class handles:
    1. Loading a paper from a URL or a local path
    2. Removing unwanted pages
    3. Splitting the paper into chunks and indexing them
    4. Generating structured notes with the LLM
    """

    def __init__(self, store: PaperStore, llm_processor: LLMProcessor):
        self.store = store
        self.llm_processor = llm_processor

    def take_notes(self, paper_url: str, paper_name: str,
                   pages_to_delete: Optional[List[int]] = None) -> List[Note]:
        """
        Generate notes for a paper, or return the stored ones if it was seen before.

        Args:
            paper_url: Remote URL or local path of the PDF; identifies the paper
            paper_name: Display name of the paper
            pages_to_delete: 1-based pages to drop before reading

        Returns:
            Notes on the paper
        """
        pdf_processor.validate_paper_source(paper_url)

        existing_paper = self.store.get_paper(paper_url)
        if existing_paper is not None:
            logger.info(f"Returning stored notes for {existing_paper.name}")
            return existing_paper.notes

        try:
            pdf = pdf_processor.load_pdf(paper_url)

            if pages_to_delete:
                pdf = pdf_processor.delete_pages(pdf, pages_to_delete)

            documents = pdf_processor.convert_pdf_to_documents(pdf)
            for doc in documents:
                doc.metadata["url"] = paper_url
                doc.metadata["source"] = paper_url
            logger.info(f"Converted {paper_url} to {len(documents)} documents")

            notes = self.llm_processor.generate_notes(documents)

            self.store.add_paper(
                PaperRecord(
                    url=paper_url,
                    name=paper_name,
                    paper=pdf_processor.format_documents_as_string(documents),
                    notes=notes,
                ),
                documents,
            )
            logger.info(f"Successfully saved paper & notes for {paper_name}")
        except PaperNotesError as e:
            logger.error(f"Taking notes on {paper_url} failed: {e}")
            raise

        return notes
