from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class StoredDocument(BaseModel):
    id: str
    title: str
    filename: str
    pageCount: int = 0
    sizeBytes: int = 0
    uploadedAt: datetime
    lastAccessedAt: Optional[datetime] = None


class SourceMetadata(BaseModel):
    page: Optional[int] = None


class SourceDocument(BaseModel):
    """A retrieved text chunk as handed back next to the model answer."""

    pageContent: str
    metadata: SourceMetadata = Field(default_factory=SourceMetadata)
