# core/fallback_annotations.py
from typing import List, Sequence
from model.annotation import BoundingBox, HighlightAnnotation
from model.document import SourceDocument
import logging

logger = logging.getLogger(__name__)

BASE_X = 50.0
BASE_Y = 150.0
STEP_X = 10.0
STEP_Y = 80.0
BOX_WIDTH = 400.0
BOX_HEIGHT = 60.0


def page_hint_annotations(
    source_documents: Sequence[SourceDocument],
    *,
    document_id: str,
    color: str = "red",
    opacity: float = 0.15,
) -> List[HighlightAnnotation]:
    """
    Coarse page-level boxes for when no excerpt text was found: one box per
    retrieved chunk that knows its page, stepped down the page so boxes from
    the same page do not sit on top of each other.
    """
    out: List[HighlightAnnotation] = []
    for i, doc in enumerate(source_documents):
        page = doc.metadata.page
        if not page:
            continue
        out.append(
            HighlightAnnotation(
                pageNumber=page,
                coordinates=BoundingBox(
                    x=BASE_X + i * STEP_X,
                    y=BASE_Y + i * STEP_Y,
                    width=BOX_WIDTH,
                    height=BOX_HEIGHT,
                ),
                color=color,
                opacity=opacity,
                documentId=document_id,
            )
        )
    logger.info("fallback.annotations sources=%d boxes=%d", len(source_documents), len(out))
    return out
