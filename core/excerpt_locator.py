# core/excerpt_locator.py
"""
Map model-provided source excerpts to highlight boxes on PDF pages.

Model "sources" rarely match the document byte for byte, so every excerpt
is expanded into searchable segments (full excerpt, sentences, short word
windows) and the segments are searched longest-first. A box accepted on a
page claims that region: later, shorter segments cannot re-claim anything
overlapping it.
"""
import re
import threading
from typing import Dict, Iterable, List, Optional, Sequence
from core.entities import LocateResult, Segment
from core.pdf_text import SearchableDocument
from model.annotation import BoundingBox, HighlightAnnotation, PageMapping
from util import functions
from util.errors import LocateCancelled, SearchFailed
from util.timing import timed
import logging

logger = logging.getLogger(__name__)

MIN_EXCERPT_CHARS = 15
PHRASE_WORDS = 6
# Word windows are only built for sentences longer than this.
PHRASE_MIN_SENTENCE_WORDS = 8
MIN_PHRASE_CHARS = 20
OVERLAP_TOLERANCE = 10.0

_SENTENCE_BOUNDARY = re.compile(r"[.!?]\s+")


def split_sentences(text: str, min_chars: int = MIN_EXCERPT_CHARS) -> List[str]:
    return [
        s.strip() for s in _SENTENCE_BOUNDARY.split(text) if len(s.strip()) > min_chars
    ]


def word_windows(
    sentence: str,
    size: int = PHRASE_WORDS,
    min_chars: int = MIN_PHRASE_CHARS,
) -> List[str]:
    words = sentence.split()
    if len(words) <= PHRASE_MIN_SENTENCE_WORDS:
        return []
    out: List[str] = []
    for i in range(len(words) - size + 1):
        phrase = " ".join(words[i : i + size])
        if len(phrase) > min_chars:
            out.append(phrase)
    return out


def build_segments(
    excerpts: Iterable[str],
    *,
    min_excerpt_chars: int = MIN_EXCERPT_CHARS,
    phrase_words: int = PHRASE_WORDS,
    min_phrase_chars: int = MIN_PHRASE_CHARS,
    max_segments: Optional[int] = None,
) -> List[Segment]:
    """
    Expand excerpts into unique segments, longest first.

    A segment produced by several excerpts belongs to the first one that
    produced it. Ties in length keep their first-seen order.
    """
    owners: Dict[str, str] = {}
    for excerpt in excerpts:
        full = (excerpt or "").strip()
        if not full:
            continue
        sentences = split_sentences(full, min_excerpt_chars)
        candidates: List[str] = []
        if len(full) > min_excerpt_chars:
            candidates.append(full)
        candidates.extend(sentences)
        for sentence in sentences:
            candidates.extend(word_windows(sentence, phrase_words, min_phrase_chars))
        for text in candidates:
            owners.setdefault(text, full)

    segments = [Segment(text=t, excerpt=e) for t, e in owners.items()]
    segments.sort(key=lambda s: len(s.text), reverse=True)
    if max_segments is not None and len(segments) > max_segments:
        logger.warning(
            "locate.segments.capped total=%d cap=%d", len(segments), max_segments
        )
        segments = segments[:max_segments]
    return segments


def _locate_on_page(
    page,
    page_number: int,
    segments: Sequence[Segment],
    accepted: List[BoundingBox],
    *,
    document_id: str,
    tolerance: float,
    color: str,
    opacity: float,
) -> List[HighlightAnnotation]:
    """
    Search every segment on one page. `accepted` is this page's suppression
    state; it is extended in place as boxes are accepted.
    """
    out: List[HighlightAnnotation] = []
    for seg in segments:
        try:
            quads = page.search(seg.text)
        except SearchFailed:
            logger.warning(
                "locate.search.failed page=%d segment=%r",
                page_number,
                functions.preview(seg.text),
            )
            continue
        for quad in quads:
            box = BoundingBox.from_quad(quad)
            if any(box.overlaps(prev, tolerance) for prev in accepted):
                logger.debug(
                    "locate.overlap.skip page=%d x=%.1f y=%.1f", page_number, box.x, box.y
                )
                continue
            accepted.append(box)
            out.append(
                HighlightAnnotation(
                    pageNumber=page_number,
                    coordinates=box,
                    color=color,
                    opacity=opacity,
                    excerpt=seg.excerpt,
                    segment=seg.text,
                    documentId=document_id,
                )
            )
    return out


def build_page_mappings(
    annotations: Sequence[HighlightAnnotation], excerpts: Iterable[str]
) -> List[PageMapping]:
    """
    Group annotations by parent excerpt, ordered like the input excerpts so a
    mapping's index lines up with its excerpt's index wherever possible.
    """
    pages_by_excerpt: Dict[str, set] = {}
    for ann in annotations:
        if ann.excerpt is None:
            continue
        pages_by_excerpt.setdefault(ann.excerpt, set()).add(ann.pageNumber)

    out: List[PageMapping] = []
    seen: set = set()
    for excerpt in excerpts:
        key = (excerpt or "").strip()
        if key in seen or key not in pages_by_excerpt:
            continue
        seen.add(key)
        out.append(PageMapping(excerpt=key, pages=sorted(pages_by_excerpt[key])))
    return out


def locate(
    document: SearchableDocument,
    excerpts: Sequence[str],
    *,
    document_id: str,
    min_excerpt_chars: int = MIN_EXCERPT_CHARS,
    phrase_words: int = PHRASE_WORDS,
    min_phrase_chars: int = MIN_PHRASE_CHARS,
    max_segments: Optional[int] = None,
    tolerance: float = OVERLAP_TOLERANCE,
    color: str = "red",
    opacity: float = 0.15,
    cancel_event: Optional[threading.Event] = None,
) -> LocateResult:
    """
    Find every occurrence of the excerpts in `document` and return highlight
    annotations, excerpt -> pages mappings and the highlighted pages.

    A failing search on one page/segment is skipped. Raises LocateCancelled
    if `cancel_event` is set between two pages.
    """
    segments = build_segments(
        excerpts,
        min_excerpt_chars=min_excerpt_chars,
        phrase_words=phrase_words,
        min_phrase_chars=min_phrase_chars,
        max_segments=max_segments,
    )
    if not segments:
        logger.info("locate.skip excerpts=%d segments=0", len(excerpts))
        return LocateResult()

    annotations: List[HighlightAnnotation] = []
    page_count = document.page_count
    with timed(logger, "locate", pages=page_count, segments=len(segments)):
        for page_index in range(page_count):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("locate.cancelled page=%d", page_index + 1)
                raise LocateCancelled(f"cancelled before page {page_index + 1}")
            page = document.load_page(page_index)
            annotations.extend(
                _locate_on_page(
                    page,
                    page_index + 1,
                    segments,
                    [],
                    document_id=document_id,
                    tolerance=tolerance,
                    color=color,
                    opacity=opacity,
                )
            )

    mappings = build_page_mappings(annotations, excerpts)
    highlighted = functions.sorted_unique(a.pageNumber for a in annotations)
    if annotations:
        logger.info(
            "locate.result annotations=%d mappings=%d pages=%s",
            len(annotations),
            len(mappings),
            highlighted,
        )
    else:
        logger.info("locate.empty excerpts=%d segments=%d", len(excerpts), len(segments))
    return LocateResult(
        annotations=annotations, page_mappings=mappings, highlighted_pages=highlighted
    )
