# core/citation_injector.py
"""
Rewrite an answer so sentences backed by located excerpts end with a
"(page N)" or "(pages N, M)" citation. The renderer turns exactly that
pattern into clickable page links, so the wording must not change.
"""
import re
from typing import Dict, List, Optional, Sequence, Tuple
from model.annotation import PageMapping
from util import functions
import logging

logger = logging.getLogger(__name__)

MIN_WORD_CHARS = 3  # words must be longer than this
PREFIX_CHARS = 4
FUZZY_MIN_MATCHES = 2
FUZZY_RATIO = 0.2
KEY_PHRASE_HEAD_CHARS = 30
MIN_KEY_PHRASE_CHARS = 10
WORDS_PER_PHRASE = 4

CITATION_PATTERN = re.compile(r"\((pages?\s+[\d,\s]+)\)")
_CITED_MARKER = "(page"


def _content_words(text: str) -> List[str]:
    return [w for w in text.lower().split() if len(w) > MIN_WORD_CHARS]


def _related(a: str, b: str) -> bool:
    return (
        a in b
        or b in a
        or b.startswith(a[:PREFIX_CHARS])
        or a.startswith(b[:PREFIX_CHARS])
    )


def fuzzy_score(
    excerpt: str,
    candidate: str,
    *,
    min_matches: int = FUZZY_MIN_MATCHES,
    ratio: float = FUZZY_RATIO,
) -> Tuple[int, bool]:
    """Return (matching word count, whether it clears the threshold)."""
    words = _content_words(excerpt)
    other = _content_words(candidate)
    matches = sum(1 for w in words if any(_related(w, o) for o in other))
    threshold = max(min_matches, ratio * min(len(words), len(other)))
    return matches, matches >= threshold


def match_pages(
    excerpt: str,
    index: int,
    mappings: Sequence[PageMapping],
    *,
    min_matches: int = FUZZY_MIN_MATCHES,
    ratio: float = FUZZY_RATIO,
) -> Optional[List[int]]:
    """
    Resolve one excerpt to pages: exact text, then best fuzzy match, then the
    mapping at the same position. None leaves the excerpt uncited.
    """
    for m in mappings:
        if m.excerpt == excerpt:
            return list(m.pages)

    best: Optional[PageMapping] = None
    best_count = -1
    for m in mappings:
        count, ok = fuzzy_score(excerpt, m.excerpt, min_matches=min_matches, ratio=ratio)
        if ok and count > best_count:
            best, best_count = m, count
    if best is not None:
        logger.debug("cite.fuzzy matches=%d pages=%s", best_count, best.pages)
        return list(best.pages)

    if index < len(mappings):
        logger.debug("cite.positional index=%d pages=%s", index, mappings[index].pages)
        return list(mappings[index].pages)
    return None


def resolve_excerpt_pages(
    excerpts: Sequence[str],
    mappings: Sequence[PageMapping],
    *,
    min_matches: int = FUZZY_MIN_MATCHES,
    ratio: float = FUZZY_RATIO,
) -> Dict[str, List[int]]:
    out: Dict[str, List[int]] = {}
    for i, excerpt in enumerate(excerpts):
        pages = match_pages(excerpt, i, mappings, min_matches=min_matches, ratio=ratio)
        if pages:
            out[excerpt] = pages
        else:
            logger.info("cite.skip excerpt=%r", functions.preview(excerpt))
    return out


def format_citation(pages: Sequence[int]) -> str:
    ordered = functions.sorted_unique(pages)
    if len(ordered) == 1:
        return f"page {ordered[0]}"
    return "pages " + ", ".join(str(p) for p in ordered)


def key_words(excerpt: str) -> List[str]:
    phrases = [
        excerpt[:KEY_PHRASE_HEAD_CHARS].strip(),
        excerpt.split(".")[0].strip(),
        excerpt.split(",")[0].strip(),
    ]
    out: List[str] = []
    for phrase in phrases:
        if len(phrase) <= MIN_KEY_PHRASE_CHARS:
            continue
        words = [w for w in phrase.split() if len(w) > MIN_WORD_CHARS]
        out.extend(words[:WORDS_PER_PHRASE])
    return out


def _cite_sentences(text: str, word: str, label: str) -> str:
    pattern = re.compile(
        r"([^.!?]*" + re.escape(word) + r"[^.!?]*?)([.!?])", re.IGNORECASE
    )

    def _sub(m: "re.Match[str]") -> str:
        before, punct = m.group(1), m.group(2)
        if _CITED_MARKER in before:
            return m.group(0)
        return f"{before} ({label}){punct}"

    return pattern.sub(_sub, text)


def inject_citations(
    answer: str,
    excerpts: Sequence[str],
    page_mappings: Sequence[PageMapping],
    *,
    min_matches: int = FUZZY_MIN_MATCHES,
    ratio: float = FUZZY_RATIO,
) -> str:
    """
    Append page citations to answer sentences sharing words with located
    excerpts. Sentences that already carry a "(page" citation are left alone,
    which makes the rewrite idempotent.
    """
    if not answer or not page_mappings:
        return answer
    resolved = resolve_excerpt_pages(
        excerpts, page_mappings, min_matches=min_matches, ratio=ratio
    )
    text = answer
    for excerpt, pages in resolved.items():
        label = format_citation(pages)
        for word in key_words(excerpt):
            text = _cite_sentences(text, word, label)
    logger.info(
        "cite.done excerpts=%d resolved=%d citations=%d",
        len(excerpts),
        len(resolved),
        len(CITATION_PATTERN.findall(text)),
    )
    return text


def parse_citations(text: str) -> List[List[int]]:
    """Page lists of every citation span, in reading order."""
    out: List[List[int]] = []
    for m in CITATION_PATTERN.finditer(text or ""):
        body = re.sub(r"pages?", "", m.group(1))
        pages = [int(p) for p in (x.strip() for x in body.split(",")) if p.isdigit()]
        if pages:
            out.append(pages)
    return out


def cited_pages(text: str) -> List[int]:
    return functions.sorted_unique(p for pages in parse_citations(text) for p in pages)
