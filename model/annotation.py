# model/annotation.py
from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional, Union
from uuid import uuid4
from pydantic import BaseModel, Field, field_validator


class BoundingBox(BaseModel):
    """Axis-aligned box in page space, top-left origin."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_quad(cls, quad) -> "BoundingBox":
        # quad = (ulx, uly, urx, ury, llx, lly, lrx, lry)
        ulx, uly, urx, ury, llx, lly, lrx, lry = quad
        x0 = min(ulx, llx)
        y0 = min(uly, ury)
        x1 = max(urx, lrx)
        y1 = max(lly, lry)
        return cls(x=x0, y=y0, width=x1 - x0, height=y1 - y0)

    def overlaps(self, other: "BoundingBox", tolerance: float = 10.0) -> bool:
        return not (
            self.x > other.x + other.width + tolerance
            or other.x > self.x + self.width + tolerance
            or self.y > other.y + other.height + tolerance
            or other.y > self.y + self.height + tolerance
        )


class Point(BaseModel):
    x: float
    y: float


class CircleCoordinates(BaseModel):
    x: float
    y: float
    radius: float


class PathCoordinates(BaseModel):
    points: List[Point]


def _new_id() -> str:
    return f"ann_{uuid4().hex}"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class _AnnotationBase(BaseModel):
    id: str = Field(default_factory=_new_id)
    pageNumber: int = Field(ge=1)
    color: str = "red"
    opacity: float = Field(default=0.15, ge=0.0, le=1.0)
    documentId: str
    createdAt: datetime = Field(default_factory=_now)


class HighlightAnnotation(_AnnotationBase):
    type: Literal["HIGHLIGHT"] = "HIGHLIGHT"
    coordinates: BoundingBox
    # Join key to page mappings; None for coarse fallback boxes.
    excerpt: Optional[str] = None
    segment: Optional[str] = None


class RectangleAnnotation(_AnnotationBase):
    type: Literal["RECTANGLE", "UNDERLINE"] = "RECTANGLE"
    coordinates: BoundingBox


class CircleAnnotation(_AnnotationBase):
    type: Literal["CIRCLE"] = "CIRCLE"
    coordinates: CircleCoordinates


class ArrowAnnotation(_AnnotationBase):
    type: Literal["ARROW"] = "ARROW"
    coordinates: PathCoordinates


class NoteAnnotation(_AnnotationBase):
    type: Literal["NOTE"] = "NOTE"
    coordinates: Point
    content: str


Annotation = Annotated[
    Union[
        HighlightAnnotation,
        RectangleAnnotation,
        CircleAnnotation,
        ArrowAnnotation,
        NoteAnnotation,
    ],
    Field(discriminator="type"),
]


class PageMapping(BaseModel):
    excerpt: str
    pages: List[int]

    @field_validator("pages")
    @classmethod
    def _sorted_unique(cls, v: List[int]) -> List[int]:
        return sorted(set(v))
