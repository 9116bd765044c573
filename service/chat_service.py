# service/chat_service.py
import logging
from typing import Awaitable, Callable, List, Sequence
import httpx
from core.citation_injector import cited_pages, inject_citations
from core.entities import LocateResult, PdfChunk, RagResult
from core.highlighting import annotate_answer, locate_in_pdf
from core.model_output import normalize_sources, parse_model_output
from core.rag_pipeline import answer_from_chunks, to_source_documents
from config.settings import settings
from model.annotation import PageMapping
from model.api import ChatResponse, InjectCitationsResponse, PdfSearchResponse
from repository.blob_repository import BlobRepository
from repository.chunk_repository import ChunkRepository
from repository.document_repository import DocumentRepository
from util.enums import ErrorMessage
from util.errors import AppError, DocumentUnreadable

logger = logging.getLogger(__name__)

Answerer = Callable[..., Awaitable[RagResult]]


class ChatService:
    def __init__(
        self,
        documents: DocumentRepository,
        blobs: BlobRepository,
        chunks: ChunkRepository,
        answerer: Answerer = answer_from_chunks,
    ) -> None:
        self._documents = documents
        self._blobs = blobs
        self._chunks = chunks
        self._answerer = answerer

    async def _require_document(self, document_id: str) -> None:
        if await self._documents.get(document_id) is None:
            raise AppError.of(ErrorMessage.DOCUMENT_NOT_FOUND)

    async def _locate(self, document_id: str, excerpts: Sequence[str]) -> LocateResult:
        try:
            pdf = await self._blobs.get_pdf(document_id)
        except Exception:
            logger.error("locate.pdf.fetch.error document=%s", document_id)
            raise
        if not pdf:
            logger.warning("locate.pdf.missing document=%s", document_id)
            raise AppError.of(ErrorMessage.DOCUMENT_NOT_FOUND)
        try:
            return await locate_in_pdf(pdf, excerpts, document_id=document_id)
        except DocumentUnreadable as e:
            logger.error("locate.pdf.unreadable document=%s reason=%s", document_id, e)
            raise AppError.of(ErrorMessage.DOCUMENT_UNREADABLE)

    async def ask(self, document_id: str, message: str, api_key: str) -> ChatResponse:
        """
        Answer a question about a stored PDF, then locate the model's source
        excerpts on the pages and cite them in the answer.
        Only an unreadable/missing document or a failed model call is an error;
        everything else degrades to fewer highlights.
        """
        question = message.strip()
        if not question:
            raise AppError.of(ErrorMessage.EMPTY_QUESTION)
        await self._require_document(document_id)

        chunks: List[PdfChunk] = await self._chunks.all(document_id)
        try:
            rag = await self._answerer(question=question, chunks=chunks, api_key=api_key)
        except httpx.HTTPError as e:
            logger.error("chat.model.error document=%s err=%s", document_id, type(e).__name__)
            raise AppError.of(ErrorMessage.UPSTREAM_MODEL_ERROR)

        output = parse_model_output(rag.raw_text)
        source_documents = to_source_documents(rag.source_chunks)
        located = (
            await self._locate(document_id, output.sources)
            if output.sources
            else LocateResult()
        )
        annotated = annotate_answer(
            output.answer,
            output.sources,
            source_documents,
            located,
            document_id=document_id,
        )
        logger.info(
            "chat.ok document=%s sources=%d annotations=%d navigate=%s",
            document_id,
            len(output.sources),
            len(annotated.annotations),
            annotated.navigate_to,
        )
        return ChatResponse(
            answer=annotated.answer,
            rawAnswer=output.answer,
            sources=output.sources,
            sourceDocuments=source_documents,
            annotations=annotated.annotations,
            pageMappings=annotated.page_mappings,
            highlightedPages=annotated.highlighted_pages,
            citedPages=cited_pages(annotated.answer),
            navigateTo=annotated.navigate_to,
        )

    async def search(self, document_id: str, excerpts: Sequence[str]) -> PdfSearchResponse:
        await self._require_document(document_id)
        cleaned = normalize_sources(list(excerpts))
        located = await self._locate(document_id, cleaned) if cleaned else LocateResult()
        return PdfSearchResponse(
            success=True,
            annotations=located.annotations,
            highlightedPages=located.highlighted_pages,
            totalMatches=located.total_matches,
            pageMappings=located.page_mappings,
        )

    @staticmethod
    def inject(
        answer: str, excerpts: Sequence[str], page_mappings: Sequence[PageMapping]
    ) -> InjectCitationsResponse:
        cited = inject_citations(
            answer,
            excerpts,
            page_mappings,
            min_matches=settings.CITATION_FUZZY_MIN_MATCHES,
            ratio=settings.CITATION_FUZZY_RATIO,
        )
        return InjectCitationsResponse(answer=cited, citedPages=cited_pages(cited))
