# service/document_service.py
import asyncio
import logging
from typing import Optional
from fastapi import UploadFile
from config.settings import settings
from core.pdf_text import chunk_pages, extract_pages_texts
from model.api import DocumentListResponse, UpdateDocumentRequest, UploadDocumentResponse
from model.document import StoredDocument
from repository.blob_repository import BlobRepository
from repository.chunk_repository import ChunkRepository
from repository.document_repository import DocumentRepository
from util.enums import ErrorMessage
from util.errors import AppError, DocumentUnreadable

logger = logging.getLogger(__name__)


class DocumentService:
    def __init__(
        self,
        documents: DocumentRepository,
        blobs: BlobRepository,
        chunks: ChunkRepository,
    ) -> None:
        self._documents = documents
        self._blobs = blobs
        self._chunks = chunks

    async def upload(self, file: UploadFile) -> UploadDocumentResponse:
        """
        Decode the PDF once to count pages and chunk its text, then persist
        bytes, chunks and metadata.
        Logs: document id, page count and byte size (no payloads).
        """
        try:
            data = await file.read()
            await file.seek(0)
        except Exception:
            logger.error("upload.read.error")
            raise

        try:
            pages = await asyncio.to_thread(extract_pages_texts, data)
        except DocumentUnreadable as e:
            logger.warning("upload.unreadable bytes=%d reason=%s", len(data), e)
            raise AppError.of(ErrorMessage.NOT_A_PDF)

        chunks = chunk_pages(pages, max_chars_per_chunk=settings.CHUNK_MAX_CHARS)
        doc = await self._documents.create(
            filename=file.filename or "document.pdf",
            page_count=len(pages),
            size_bytes=len(data),
        )
        try:
            await self._blobs.put_pdf(doc.id, data)
            await self._chunks.put_all(doc.id, chunks)
        except Exception:
            logger.error("upload.persist.error document=%s", doc.id)
            await self._documents.delete(doc.id)
            raise
        logger.info(
            "upload.ok document=%s pages=%d chunks=%d bytes=%d",
            doc.id,
            len(pages),
            len(chunks),
            len(data),
        )
        return UploadDocumentResponse(documentId=doc.id, pageCount=len(pages))

    async def get(self, document_id: str) -> StoredDocument:
        doc = await self._documents.get(document_id)
        if doc is None:
            raise AppError.of(ErrorMessage.DOCUMENT_NOT_FOUND)
        return doc

    async def list_all(self, search: Optional[str] = None) -> DocumentListResponse:
        docs = await self._documents.list_all(search)
        logger.info("document.list count=%d filtered=%s", len(docs), bool(search))
        return DocumentListResponse(documents=docs)

    async def update(
        self, document_id: str, payload: UpdateDocumentRequest
    ) -> StoredDocument:
        doc = await self._documents.update(
            document_id, title=payload.title, page_count=payload.pageCount
        )
        if doc is None:
            raise AppError.of(ErrorMessage.DOCUMENT_NOT_FOUND)
        logger.info(
            "document.updated document=%s title=%s pages=%s",
            document_id,
            payload.title is not None,
            payload.pageCount,
        )
        return doc

    async def delete(self, document_id: str) -> None:
        removed = await self._documents.delete(document_id)
        await self._blobs.delete(document_id)
        await self._chunks.clear(document_id)
        if not removed:
            raise AppError.of(ErrorMessage.DOCUMENT_NOT_FOUND)
        logger.info("document.deleted document=%s", document_id)
