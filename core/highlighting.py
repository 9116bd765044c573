# core/highlighting.py
import asyncio
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Sequence
from config.settings import settings
from core.citation_injector import inject_citations
from core.entities import LocateResult
from core.excerpt_locator import locate
from core.fallback_annotations import page_hint_annotations
from core.pdf_text import open_pdf
from model.annotation import HighlightAnnotation, PageMapping
from model.document import SourceDocument
import logging

logger = logging.getLogger(__name__)


@dataclass
class AnnotatedAnswer:
    answer: str
    annotations: List[HighlightAnnotation] = field(default_factory=list)
    page_mappings: List[PageMapping] = field(default_factory=list)
    highlighted_pages: List[int] = field(default_factory=list)
    navigate_to: Optional[int] = None


def _locate_sync(
    pdf_bytes: bytes,
    excerpts: Sequence[str],
    document_id: str,
    cancel_event: threading.Event,
) -> LocateResult:
    # One decoding handle per call; closed on every exit path by open_pdf.
    with open_pdf(pdf_bytes) as doc:
        return locate(
            doc,
            excerpts,
            document_id=document_id,
            min_excerpt_chars=settings.LOCATE_MIN_EXCERPT_CHARS,
            phrase_words=settings.LOCATE_PHRASE_WORDS,
            min_phrase_chars=settings.LOCATE_MIN_PHRASE_CHARS,
            max_segments=settings.LOCATE_MAX_SEGMENTS,
            tolerance=settings.LOCATE_OVERLAP_TOLERANCE,
            color=settings.HIGHLIGHT_COLOR,
            opacity=settings.HIGHLIGHT_OPACITY,
            cancel_event=cancel_event,
        )


async def locate_in_pdf(
    pdf_bytes: bytes,
    excerpts: Sequence[str],
    *,
    document_id: str,
    timeout: Optional[float] = None,
) -> LocateResult:
    """
    Run the locator in a worker thread. Expiry of `timeout` yields an empty
    result; the worker is told to stop at its next page boundary, also when
    the awaiting request is cancelled. DocumentUnreadable propagates.
    """
    if not excerpts:
        return LocateResult()
    limit = settings.LOCATE_TIMEOUT_SECONDS if timeout is None else timeout
    cancel_event = threading.Event()
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(_locate_sync, pdf_bytes, excerpts, document_id, cancel_event),
            timeout=limit,
        )
    except asyncio.TimeoutError:
        logger.warning("locate.timeout document=%s seconds=%.1f", document_id, limit)
        return LocateResult()
    finally:
        cancel_event.set()


def annotate_answer(
    answer: str,
    sources: Sequence[str],
    source_documents: Sequence[SourceDocument],
    located: LocateResult,
    *,
    document_id: str,
) -> AnnotatedAnswer:
    """
    With located text: cite the answer and navigate to the first highlighted
    page. Without: coarse page boxes from the retrieved chunks, no citations.
    """
    if located.annotations:
        cited = inject_citations(
            answer,
            sources,
            located.page_mappings,
            min_matches=settings.CITATION_FUZZY_MIN_MATCHES,
            ratio=settings.CITATION_FUZZY_RATIO,
        )
        return AnnotatedAnswer(
            answer=cited,
            annotations=list(located.annotations),
            page_mappings=list(located.page_mappings),
            highlighted_pages=list(located.highlighted_pages),
            navigate_to=located.highlighted_pages[0],
        )

    fallback = page_hint_annotations(
        source_documents,
        document_id=document_id,
        color=settings.HIGHLIGHT_COLOR,
        opacity=settings.HIGHLIGHT_OPACITY,
    )
    pages = sorted({a.pageNumber for a in fallback})
    return AnnotatedAnswer(
        answer=answer,
        annotations=fallback,
        highlighted_pages=pages,
        navigate_to=fallback[0].pageNumber if fallback else None,
    )
