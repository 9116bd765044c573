"""
Pytest configuration: environment defaults for Settings plus shared fakes.

Settings are read at import time, so the environment is populated before
any project module is imported.
"""
import os

for _key, _value in {
    "APP_ENV": "test",
    "REDIS_URL": "redis://localhost:6379/15",
    "PERSISTENCE_TTL_SECONDS": "600",
    "ALLOWED_ORIGIN": "http://localhost:3000",
    "RATE_LIMIT_TIMES": "1000",
    "RATE_LIMIT_SECONDS": "60",
    "MAX_FILE_MB": "5",
    "TRUST_PROXY": "false",
    "ANTHROPIC_API_URL": "https://api.anthropic.test/v1/messages",
    "ANTHROPIC_MODEL": "claude-test",
    "ANTHROPIC_VERSION": "2023-06-01",
}.items():
    os.environ.setdefault(_key, _value)

from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import fitz
import pytest

from core.entities import PdfChunk
from model.document import StoredDocument
from util.errors import SearchFailed
from util.functions import title_from_filename

VIRUS_SENTENCE = "Viruses cannot reproduce independently."


def rect_quad(x0: float, y0: float, x1: float, y1: float):
    """Quad (ul, ur, ll, lr) for an axis-aligned rectangle."""
    return (x0, y0, x1, y0, x0, y1, x1, y1)


class FakePage:
    def __init__(self, hits: Optional[Dict[str, list]] = None, failing: Sequence[str] = ()):
        self.hits = hits or {}
        self.failing = set(failing)
        self.queries: List[str] = []

    def search(self, query: str):
        self.queries.append(query)
        if query in self.failing:
            raise SearchFailed("malformed query")
        return list(self.hits.get(query, []))


class FakeDocument:
    def __init__(self, pages: List[FakePage]):
        self.pages = pages

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def load_page(self, index: int) -> FakePage:
        return self.pages[index]


def make_pdf(pages_text: Sequence[str]) -> bytes:
    doc = fitz.open()
    for text in pages_text:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


class MemoryDocuments:
    def __init__(self):
        self.items: Dict[str, StoredDocument] = {}

    def add(self, document_id: str, page_count: int = 1, title: str = "") -> StoredDocument:
        now = datetime.now(timezone.utc)
        doc = StoredDocument(
            id=document_id,
            title=title or document_id,
            filename=f"{document_id}.pdf",
            pageCount=page_count,
            sizeBytes=0,
            uploadedAt=now,
            lastAccessedAt=now,
        )
        self.items[document_id] = doc
        return doc

    async def create(self, *, filename: str, page_count: int, size_bytes: int):
        doc = self.add(
            f"doc-{len(self.items) + 1}", page_count, title=title_from_filename(filename)
        )
        doc.filename = filename
        doc.sizeBytes = size_bytes
        return doc

    async def list_all(self, search: Optional[str] = None):
        needle = (search or "").lower()
        docs = [d for d in self.items.values() if needle in d.title.lower()]
        return sorted(docs, key=lambda d: d.lastAccessedAt, reverse=True)

    async def update(self, document_id: str, *, title=None, page_count=None):
        doc = self.items.get(document_id)
        if doc is None:
            return None
        if title:
            doc.title = title
        if page_count is not None:
            doc.pageCount = page_count
        doc.lastAccessedAt = datetime.now(timezone.utc)
        return doc

    async def get(self, document_id: str):
        return self.items.get(document_id)

    async def delete(self, document_id: str) -> int:
        return 1 if self.items.pop(document_id, None) else 0


class MemoryBlobs:
    def __init__(self):
        self.items: Dict[str, bytes] = {}

    async def put_pdf(self, document_id: str, data: bytes) -> None:
        self.items[document_id] = data

    async def get_pdf(self, document_id: str):
        return self.items.get(document_id)

    async def delete(self, document_id: str) -> int:
        return 1 if self.items.pop(document_id, None) is not None else 0


class MemoryChunks:
    def __init__(self):
        self.items: Dict[str, List[PdfChunk]] = {}

    async def put_all(self, document_id: str, chunks) -> None:
        self.items[document_id] = list(chunks)

    async def all(self, document_id: str) -> List[PdfChunk]:
        return list(self.items.get(document_id, []))

    async def clear(self, document_id: str) -> int:
        return 1 if self.items.pop(document_id, None) is not None else 0


@pytest.fixture
def memory_repos():
    return MemoryDocuments(), MemoryBlobs(), MemoryChunks()


@pytest.fixture
def virus_pdf() -> bytes:
    """Three-page PDF with the virus sentence on page 2."""
    return make_pdf(
        [
            "Cells are the basic unit of life.",
            VIRUS_SENTENCE,
            "Bacteria are single celled organisms.",
        ]
    )
