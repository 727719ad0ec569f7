from pydantic import BaseModel, ConfigDict, Field
from typing import List
from datetime import datetime, timezone
from .note import Note

def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string"""
    return datetime.now(timezone.utc).isoformat()

class PaperRecord(BaseModel):
    """
    Model representing an ingested paper for storage and retrieval.
    The source URL is the identity key.
    """
    model_config = ConfigDict(populate_by_name=True)

    url: str
    name: str
    paper: str = ""
    notes: List[Note] = Field(default_factory=list)
    date_created: str = Field(default_factory=utc_now_iso, alias="dateCreated")
