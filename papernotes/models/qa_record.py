from pydantic import BaseModel, ConfigDict, Field
from typing import List
from .paper_record import utc_now_iso

class QARecord(BaseModel):
    """
    Model representing an answered question stored next to its paper.
    The question text is the identity key (exact match only).
    """
    model_config = ConfigDict(populate_by_name=True)

    question: str
    answer: str
    context: str = ""
    followup_questions: List[str] = Field(default_factory=list, alias="followupQuestions")
    date_created: str = Field(default_factory=utc_now_iso, alias="dateCreated")
