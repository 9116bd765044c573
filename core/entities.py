# core/entities.py
from dataclasses import dataclass, field
from typing import List, Optional
import numpy as np
from model.annotation import HighlightAnnotation, PageMapping


@dataclass
class EmbeddingIndex:
    """
    L2-normalized embedding matrix for cosine similarity search.
    """

    embeddings: np.ndarray  # (n, d) float32


@dataclass
class PdfChunk:
    page: int  # 1-based page index
    paragraph: Optional[int]  # chunk ordinal within page
    text: str


@dataclass(frozen=True)
class Segment:
    """A searchable string derived from an excerpt, tagged with its parent."""

    text: str
    excerpt: str


@dataclass
class ModelOutput:
    answer: str
    sources: List[str] = field(default_factory=list)


@dataclass
class RagResult:
    raw_text: str
    source_chunks: List[PdfChunk] = field(default_factory=list)


@dataclass
class LocateResult:
    annotations: List[HighlightAnnotation] = field(default_factory=list)
    page_mappings: List[PageMapping] = field(default_factory=list)
    highlighted_pages: List[int] = field(default_factory=list)

    @property
    def total_matches(self) -> int:
        return len(self.annotations)
