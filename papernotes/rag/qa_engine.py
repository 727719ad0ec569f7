import logging
from typing import List

from .. import config
from ..errors import LLMError, PaperNotFoundError
from ..llm_processor import LLMProcessor
from ..models import QARecord, QAResponse
from ..pdf_processor import format_documents_as_string
from ..storage import PaperStore

logger = logging.getLogger(__name__)

ERROR_ANSWER = "Error"


def error_response() -> List[QAResponse]:
    """Answer returned in place of a real one when the model call fails"""
    return [QAResponse(answer=ERROR_ANSWER, followup_questions=[ERROR_ANSWER])]


class QAEngine:
    """
    Answers questions about papers that already have notes.

    Relevant chunks are retrieved from the paper's vector index and sent to
    the LLM together with the paper's notes.
    """

    def __init__(self, store: PaperStore, llm_processor: LLMProcessor, k: int = None):
        self.store = store
        self.llm_processor = llm_processor
        self.k = k or config.RETRIEVER_K

    def answer_question(self, question: str, paper_url: str) -> List[QAResponse]:
        """
        Answer a question about a paper.

        Args:
            question: The question to answer
            paper_url: URL of a paper previously passed to take_notes

        Returns:
            Answers with follow up questions
        """
        if not self.store.has_index(paper_url):
            raise PaperNotFoundError("No vector store found for paper")

        paper = self.store.get_paper(paper_url)
        if paper is None or not paper.notes:
            raise PaperNotFoundError("No notes found for paper")

        existing_qa = self.store.find_qa(paper_url, question)
        if existing_qa is not None:
            logger.info(f"Returning stored answer for question: '{question}'")
            return [QAResponse(answer=existing_qa.answer,
                               followup_questions=existing_qa.followup_questions)]

        documents = self.store.similarity_search(paper_url, question, k=self.k)
        logger.info(f"Fetched relevant documents: {len(documents)} documents")

        try:
            answers = self.llm_processor.answer_question(question, documents, paper.notes)
        except LLMError as e:
            logger.error(f"QA failed for question '{question}': {e}")
            return error_response()

        self.store.save_qa(paper_url, QARecord(
            question=question,
            answer=answers[0].answer,
            context=format_documents_as_string(documents),
            followup_questions=answers[0].followup_questions,
        ))
        logger.info("Saved questions and answers data")

        return answers
