from pydantic import BaseModel, ConfigDict, Field
from typing import List

class Note(BaseModel):
    """
    A single note taken on a paper.
    Pairs a free-text summary with the pages it was derived from.
    """
    model_config = ConfigDict(populate_by_name=True)

    note: str
    page_numbers: List[int] = Field(default_factory=list, alias="pageNumbers")
