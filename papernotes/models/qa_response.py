from pydantic import BaseModel, ConfigDict, Field
from typing import List

class QAResponse(BaseModel):
    """
    Model representing an answer to a question about a paper.
    Contains the answer text and suggested follow up questions.
    """
    model_config = ConfigDict(populate_by_name=True)

    answer: str
    followup_questions: List[str] = Field(default_factory=list, alias="followupQuestions")
