from pydantic import BaseModel, ConfigDict, Field

class QARequest(BaseModel):
    """
    Model representing a question asked about an already ingested paper.
    """
    model_config = ConfigDict(populate_by_name=True)

    paper_url: str = Field(..., alias="paperUrl", examples=["https://arxiv.org/pdf/2305.15334.pdf"])
    question: str = Field(..., min_length=1, examples=["What is the main conclusion of the paper?"])
