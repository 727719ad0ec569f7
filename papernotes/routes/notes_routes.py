from fastapi import APIRouter, HTTPException, Depends
from typing import List
import logging

from ..dependencies import get_notes_engine
from ..errors import InvalidPagesError, InvalidPaperSourceError, PaperNotesError
from ..models import Note, TakeNotesRequest
from ..pdf_processor import parse_pages_to_delete
from ..rag import NotesEngine

# Setup logging
logger = logging.getLogger("notes_routes")

router = APIRouter(
    tags=["notes"],
)

@router.post("/take-notes", response_model=List[Note])
def take_notes(request: TakeNotesRequest, engine: NotesEngine = Depends(get_notes_engine)):
    """
    Take notes on a paper.

    Args:
        request: paperUrl, paperName and optional comma-separated pagesToDelete

    Returns:
        Notes on the paper, each with the pages it comes from
    """
    logger.info(f"Taking notes on {request.paper_name} ({request.paper_url})")

    try:
        pages_to_delete = parse_pages_to_delete(request.pages_to_delete)
        return engine.take_notes(request.paper_url, request.paper_name, pages_to_delete)
    except (InvalidPaperSourceError, InvalidPagesError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PaperNotesError as e:
        logger.error(f"Error taking notes: {e}")
        raise HTTPException(status_code=500, detail="Notes generation failed")
    except Exception as e:
        logger.exception(f"Unexpected error taking notes: {e}")
        raise HTTPException(status_code=500, detail="Notes generation failed")
