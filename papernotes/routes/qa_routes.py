from fastapi import APIRouter, HTTPException, Depends
from typing import List
import logging

from ..dependencies import get_qa_engine
from ..errors import PaperNotFoundError, PaperNotesError
from ..models import QARequest, QAResponse
from ..rag import QAEngine

# Setup logging
logger = logging.getLogger("qa_routes")

router = APIRouter(
    tags=["qa"],
    responses={404: {"description": "Paper not found"}}
)

@router.post("/qa", response_model=List[QAResponse])
def question_answering(request: QARequest, engine: QAEngine = Depends(get_qa_engine)):
    """
    Run a question-answering task on a paper that already has notes.

    Returns:
        The answer and suggested follow up questions
    """
    try:
        return engine.answer_question(request.question, request.paper_url)
    except PaperNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PaperNotesError as e:
        logger.error(f"Error answering question: {e}")
        raise HTTPException(status_code=500, detail="QA failed")
    except Exception as e:
        logger.exception(f"Unexpected error answering question: {e}")
        raise HTTPException(status_code=500, detail="QA failed")
