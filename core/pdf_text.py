# core/pdf_text.py
from contextlib import contextmanager
from typing import Iterator, List, Protocol, Tuple
import fitz
from core.entities import PdfChunk
from util.errors import DocumentUnreadable, SearchFailed
from util.timing import timed
import logging

logger = logging.getLogger(__name__)

# (ulx, uly, urx, ury, llx, lly, lrx, lry)
Quad = Tuple[float, float, float, float, float, float, float, float]


class SearchablePage(Protocol):
    def search(self, query: str) -> List[Quad]: ...


class SearchableDocument(Protocol):
    @property
    def page_count(self) -> int: ...

    def load_page(self, index: int) -> SearchablePage: ...


class PdfPage:
    """Text search over one decoded page."""

    def __init__(self, page: "fitz.Page") -> None:
        self._page = page

    def search(self, query: str) -> List[Quad]:
        try:
            hits = self._page.search_for(query, quads=True)
        except Exception as e:
            raise SearchFailed(str(e)) from e
        return [
            (q.ul.x, q.ul.y, q.ur.x, q.ur.y, q.ll.x, q.ll.y, q.lr.x, q.lr.y)
            for q in hits
        ]

    def text(self) -> str:
        return (self._page.get_text("text") or "").strip()


class PdfDocument:
    def __init__(self, doc: "fitz.Document") -> None:
        self._doc = doc

    @property
    def page_count(self) -> int:
        return self._doc.page_count

    def load_page(self, index: int) -> PdfPage:
        return PdfPage(self._doc.load_page(index))


@contextmanager
def open_pdf(file_bytes: bytes) -> Iterator[PdfDocument]:
    """
    Open a private decoding handle for `file_bytes` and always close it.
    Raises DocumentUnreadable when the bytes are not a PDF.
    """
    if not file_bytes:
        raise DocumentUnreadable("empty document")
    try:
        doc = fitz.open(stream=file_bytes, filetype="pdf")
    except Exception as e:
        raise DocumentUnreadable(type(e).__name__) from e
    try:
        if not doc.is_pdf:
            raise DocumentUnreadable("not a pdf")
        yield PdfDocument(doc)
    finally:
        doc.close()


def extract_pages_texts(file_bytes: bytes) -> List[Tuple[int, str]]:
    """
    Return [(page_number, page_text)] for the whole PDF.
    Raises DocumentUnreadable if the bytes cannot be decoded.
    """
    out: List[Tuple[int, str]] = []
    with timed(logger, "pdf.open"):
        with open_pdf(file_bytes) as doc:
            pages = doc.page_count
            with timed(logger, "pdf.parse", pages=pages):
                for i in range(pages):
                    out.append((i + 1, doc.load_page(i).text()))
    logger.info("pdf.pages count=%d", len(out))
    return out


def _greedy_para_split(text: str, max_chars: int = 1000) -> List[str]:
    paras = [p.strip() for p in text.split("\n") if p.strip()]
    if not paras:
        return []
    chunks: List[str] = []
    buf: List[str] = []
    size = 0
    for p in paras:
        if size + len(p) + 1 > max_chars and buf:
            chunks.append("\n".join(buf))
            buf = [p]
            size = len(p)
        else:
            buf.append(p)
            size += len(p) + 1
    if buf:
        chunks.append("\n".join(buf))
    return chunks


def chunk_pages(
    pages: List[Tuple[int, str]], max_chars_per_chunk: int = 1000
) -> List[PdfChunk]:
    """
    Page-aware chunking. Chunks are paragraph groups (~max_chars) that never
    cross a page boundary, so every chunk keeps a single page number.
    """
    out: List[PdfChunk] = []
    with timed(logger, "pdf.chunk", pages=len(pages), max_chars=max_chars_per_chunk):
        for pg, txt in pages:
            for j, chunk in enumerate(_greedy_para_split(txt, max_chars_per_chunk), start=1):
                out.append(PdfChunk(page=pg, paragraph=j, text=chunk))
    logger.info("pdf.chunks count=%d", len(out))
    return out
