# model/api.py
from typing import List, Optional
from pydantic import BaseModel, Field
from model.annotation import Annotation, PageMapping
from model.document import SourceDocument, StoredDocument


class UploadDocumentResponse(BaseModel):
    documentId: str
    pageCount: int


class ChatRequest(BaseModel):
    documentId: str = Field(min_length=1)
    message: str = Field(min_length=1)
    apiKey: str = Field(min_length=1)


class ChatResponse(BaseModel):
    answer: str
    rawAnswer: str
    sources: List[str] = Field(default_factory=list)
    sourceDocuments: List[SourceDocument] = Field(default_factory=list)
    annotations: List[Annotation] = Field(default_factory=list)
    pageMappings: List[PageMapping] = Field(default_factory=list)
    highlightedPages: List[int] = Field(default_factory=list)
    citedPages: List[int] = Field(default_factory=list)
    navigateTo: Optional[int] = None


class PdfSearchRequest(BaseModel):
    documentId: str = Field(min_length=1)
    excerpts: List[str]


class PdfSearchResponse(BaseModel):
    success: bool
    annotations: List[Annotation] = Field(default_factory=list)
    highlightedPages: List[int] = Field(default_factory=list)
    totalMatches: int = 0
    pageMappings: List[PageMapping] = Field(default_factory=list)


class InjectCitationsRequest(BaseModel):
    answer: str
    excerpts: List[str] = Field(default_factory=list)
    pageMappings: List[PageMapping] = Field(default_factory=list)


class InjectCitationsResponse(BaseModel):
    answer: str
    citedPages: List[int] = Field(default_factory=list)


class UpdateDocumentRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    pageCount: Optional[int] = Field(default=None, ge=1)


class DocumentListResponse(BaseModel):
    documents: List[StoredDocument] = Field(default_factory=list)
