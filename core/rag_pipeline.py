# core/rag_pipeline.py
import asyncio
from typing import List, Sequence
from config.settings import settings
from core.anthropic_client import answer_question
from core.embeddings_retriever import build_index, mmr
from core.entities import PdfChunk, RagResult
from model.document import SourceDocument, SourceMetadata
import logging
from util.timing import timed

logger = logging.getLogger(__name__)


def retrieve(question: str, chunks: Sequence[PdfChunk]) -> List[PdfChunk]:
    """
    Pick the context chunks for `question` with MMR over local embeddings.
    """
    usable = [c for c in chunks if c.text.strip()]
    if not usable:
        return []
    with timed(logger, "rag.embed", n=len(usable)):
        index = build_index([c.text for c in usable])
    with timed(logger, "rag.retrieve", k=settings.RETRIEVAL_K):
        hits = mmr(
            index,
            question,
            k=settings.RETRIEVAL_K,
            fetch_k=settings.RETRIEVAL_FETCH_K,
            lambda_mult=settings.MMR_LAMBDA,
        )
    return [usable[i] for i, _ in hits]


async def answer_from_chunks(
    *,
    question: str,
    chunks: Sequence[PdfChunk],
    api_key: str,
) -> RagResult:
    """
    End-to-end retrieval-augmented answer:
    1) Embed stored chunks locally
    2) Select context with MMR
    3) Ask the LLM for {answer, sources} JSON
    Returns the raw reply and the chunks it was grounded on.
    """
    with timed(logger, "rag.pipeline"):
        # Embedding is CPU bound; keep the event loop free while it runs.
        context = await asyncio.to_thread(retrieve, question, chunks)
        logger.info("rag.context count=%d", len(context))
        raw = await answer_question(
            api_key=api_key,
            model=settings.ANTHROPIC_MODEL,
            api_url=settings.ANTHROPIC_API_URL,
            question=question,
            context=context,
            max_tokens=settings.ANSWER_MAX_TOKENS,
            timeout=settings.ANSWER_TIMEOUT_SECONDS,
        )
    return RagResult(raw_text=raw, source_chunks=context)


def to_source_documents(chunks: Sequence[PdfChunk]) -> List[SourceDocument]:
    return [
        SourceDocument(pageContent=c.text, metadata=SourceMetadata(page=c.page))
        for c in chunks
    ]
