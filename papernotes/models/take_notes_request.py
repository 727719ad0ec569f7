from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

class TakeNotesRequest(BaseModel):
    """
    Request model for taking notes on a paper.
    pagesToDelete is a comma-separated list of 1-based page numbers, e.g. "1,2,3".
    """
    model_config = ConfigDict(populate_by_name=True)

    paper_url: str = Field(..., alias="paperUrl", examples=["https://arxiv.org/pdf/2305.15334.pdf"])
    paper_name: str = Field(..., alias="paperName", examples=["Gorilla"])
    pages_to_delete: Optional[str] = Field(None, alias="pagesToDelete", examples=["1,2,3"])
