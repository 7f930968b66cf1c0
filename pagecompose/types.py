"""
Unified Data Types for Page Composition
=======================================
All stages MUST use these types. No custom structures allowed.

Type Hierarchy:
- BoundingBox: Axis-aligned box in top-left-origin page coordinates
- TextFragment: Positioned text run reported by the upstream parser
- Composite: One or more fragments merged into a text block
- ImageElement / LinkElement: Non-text passthrough records
- Page: One processed page in reading order
- ComposedPage: Several pages merged by the continuity analyzer
- ProcessingContext: Per-invocation state threaded through all stages
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union


DEFAULT_FONT_SIZE = 12.0


# ============================================================
# Geometry
# ============================================================

@dataclass(frozen=True)
class BoundingBox:
    """
    Bounding box with top-left origin.

    Attributes:
        top: Distance from the page top edge
        left: Distance from the page left edge
        width: Horizontal extent (never negative)
        height: Vertical extent (never negative)
    """
    top: float = 0.0
    left: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def center_x(self) -> float:
        """Horizontal center"""
        return self.left + self.width / 2

    @property
    def center_y(self) -> float:
        """Vertical center"""
        return self.top + self.height / 2

    def expanded(self, margin: float) -> 'BoundingBox':
        """Grow the box by margin on every side"""
        return BoundingBox(
            top=self.top - margin,
            left=self.left - margin,
            width=self.width + 2 * margin,
            height=self.height + 2 * margin,
        )

    def intersects(self, other: 'BoundingBox') -> bool:
        """True if the boxes overlap or touch"""
        return (
            self.left <= other.right and
            other.left <= self.right and
            self.top <= other.bottom and
            other.top <= self.bottom
        )

    def offset(self, dy: float = 0.0, dx: float = 0.0) -> 'BoundingBox':
        """Translated copy"""
        return replace(self, top=self.top + dy, left=self.left + dx)

    @classmethod
    def union(cls, boxes: Iterable['BoundingBox']) -> 'BoundingBox':
        """Minimal box enclosing all boxes"""
        boxes = list(boxes)
        if not boxes:
            return cls()
        top = min(b.top for b in boxes)
        left = min(b.left for b in boxes)
        bottom = max(b.bottom for b in boxes)
        right = max(b.right for b in boxes)
        return cls(top=top, left=left, width=right - left, height=bottom - top)

    def to_dict(self) -> Dict[str, float]:
        return {
            "top": self.top,
            "left": self.left,
            "width": self.width,
            "height": self.height,
        }


# ============================================================
# Text
# ============================================================

@dataclass(frozen=True)
class TextFragment:
    """
    Minimal positioned unit of text as reported by the upstream parser.
    Always fully populated: ingestion replaces bad values with defaults.
    """
    text: str
    bbox: BoundingBox
    font_size: float = DEFAULT_FONT_SIZE
    font_family: Optional[str] = None
    formatted_text: str = ""

    @property
    def char_count(self) -> int:
        return len(self.text)

    @property
    def html(self) -> str:
        """Formatted text, falling back to the plain text"""
        return self.formatted_text or self.text


class SemanticType(Enum):
    """Semantic label assigned by the classification stage"""
    H1 = "h1"
    H2 = "h2"
    H3 = "h3"
    H4 = "h4"
    H5 = "h5"
    PARAGRAPH = "paragraph"

    @property
    def heading_level(self) -> Optional[int]:
        """1..5 for headings, None for paragraphs"""
        if self is SemanticType.PARAGRAPH:
            return None
        return int(self.value[1])

    @property
    def is_heading(self) -> bool:
        return self is not SemanticType.PARAGRAPH

    @classmethod
    def heading(cls, level: int) -> 'SemanticType':
        return cls("h%d" % level)


@dataclass
class Composite:
    """
    One or more fragments merged into a single text block.

    The bounding box and font size are derived from the source fragments
    by from_fragments(); classification only sets semantic_type.
    """
    id: str
    text: str
    formatted_text: str
    bbox: BoundingBox
    font_size: float
    font_family: Optional[str]
    source_fragments: List[TextFragment] = field(default_factory=list)
    composed: bool = False
    semantic_type: SemanticType = SemanticType.PARAGRAPH

    kind = "text"

    @classmethod
    def from_fragments(cls, composite_id: str, fragments: Sequence[TextFragment]) -> 'Composite':
        """
        Build a composite from fragments that are already in reading order.

        Text is joined with single spaces. Font size is the character-count
        weighted mean; font family is the one covering the most characters.
        """
        fragments = list(fragments)
        if not fragments:
            raise ValueError("composite needs at least one fragment")

        text = " ".join(f.text for f in fragments)
        formatted = " ".join(f.html for f in fragments)

        return cls(
            id=composite_id,
            text=text,
            formatted_text=formatted,
            bbox=BoundingBox.union(f.bbox for f in fragments),
            font_size=weighted_average_font_size(fragments),
            font_family=dominant_font_family(fragments),
            source_fragments=fragments,
            composed=len(fragments) > 1,
        )

    @property
    def char_count(self) -> int:
        return len(self.text)

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    @property
    def is_heading(self) -> bool:
        return self.semantic_type.is_heading

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.semantic_type.value,
            "data": self.text,
            "formattedData": self.formatted_text,
            "boundingBox": self.bbox.to_dict(),
            "attributes": {
                "fontSize": self.font_size,
                "fontFamily": self.font_family,
                "composed": self.composed,
            },
        }


# ============================================================
# Non-text passthrough elements
# ============================================================

@dataclass(frozen=True)
class ImageElement:
    """Image placement; only the box is used for ordering"""
    id: str
    bbox: BoundingBox
    src: Optional[str] = None

    kind = "image"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "type": self.kind, "data": self.src, "boundingBox": self.bbox.to_dict()}


@dataclass(frozen=True)
class LinkElement:
    """Link annotation; only the box is used for ordering"""
    id: str
    bbox: BoundingBox
    url: Optional[str] = None

    kind = "link"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "type": self.kind, "data": self.url, "boundingBox": self.bbox.to_dict()}


NonTextElement = Union[ImageElement, LinkElement]
PageElement = Union[Composite, ImageElement, LinkElement]


def with_offset(element: PageElement, dy: float) -> PageElement:
    """Copy of element moved down by dy; the original is left untouched"""
    if isinstance(element, Composite):
        return replace(
            element,
            bbox=element.bbox.offset(dy),
            source_fragments=[replace(f, bbox=f.bbox.offset(dy)) for f in element.source_fragments],
        )
    return replace(element, bbox=element.bbox.offset(dy))


# ============================================================
# Pages
# ============================================================

@dataclass
class Page:
    """A single processed page with its elements in reading order"""
    index: int
    width: float
    height: float
    title: str
    ordered_elements: List[PageElement] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def text_composites(self) -> List[Composite]:
        return [el for el in self.ordered_elements if isinstance(el, Composite)]

    @property
    def source_page_indexes(self) -> Tuple[int, ...]:
        return (self.index,)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "width": self.width,
            "height": self.height,
            "title": self.title,
            "orderedElements": [el.to_dict() for el in self.ordered_elements],
            "metadata": {**metadata_to_dict(self.metadata), "isComposed": False},
        }


@dataclass(frozen=True)
class ComposedPage:
    """
    Several consecutive pages merged into one logical page.
    Created only by the continuity analyzer; never modified afterwards.
    """
    index: int
    width: float
    height: float
    title: str
    ordered_elements: Tuple[PageElement, ...]
    source_page_indexes: Tuple[int, ...]
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def merged_height(self) -> float:
        return self.height

    @property
    def text_composites(self) -> List[Composite]:
        return [el for el in self.ordered_elements if isinstance(el, Composite)]

    def to_dict(self) -> Dict[str, Any]:
        meta = metadata_to_dict(self.metadata)
        meta["composedFromPageIndexes"] = list(self.source_page_indexes)
        meta["isComposed"] = True
        return {
            "index": self.index,
            "width": self.width,
            "height": self.height,
            "title": self.title,
            "orderedElements": [el.to_dict() for el in self.ordered_elements],
            "metadata": meta,
        }


# ============================================================
# Per-invocation context
# ============================================================

@dataclass
class ProcessingContext:
    """
    State owned by one pipeline run.

    Composite ids are counted per page so pages processed by independent
    workers still get deterministic ids.
    """
    composite_counters: Dict[int, int] = field(default_factory=dict)
    malformed_fragments: int = 0
    diagnostics: List[str] = field(default_factory=list)

    def next_composite_id(self, page_index: int) -> str:
        n = self.composite_counters.get(page_index, 0) + 1
        self.composite_counters[page_index] = n
        return "p%d_c%d" % (page_index, n)

    def note(self, message: str):
        self.diagnostics.append(message)


# ============================================================
# Helper Functions
# ============================================================

def weighted_average_font_size(items: Iterable[Any], default: float = DEFAULT_FONT_SIZE) -> float:
    """
    Character-count weighted mean font size.

    Works for anything with `text` and `font_size` (fragments, composites).
    Items with no characters still count with weight 1 so an all-empty
    input does not divide by zero.
    """
    total_weight = 0
    total = 0.0
    for item in items:
        weight = len(item.text) or 1
        total += item.font_size * weight
        total_weight += weight
    if total_weight == 0:
        return default
    avg = total / total_weight
    return avg if math.isfinite(avg) and avg > 0 else default


def dominant_font_family(items: Iterable[Any]) -> Optional[str]:
    """Font family covering the most characters (first seen wins ties)"""
    weights: Dict[str, int] = {}
    for item in items:
        if item.font_family:
            weights[item.font_family] = weights.get(item.font_family, 0) + max(1, len(item.text))
    if not weights:
        return None
    best = max(weights.values())
    for family, weight in weights.items():
        if weight == best:
            return family
    return None


def camel_case(key: str) -> str:
    """snake_case -> camelCase; keys without underscores are returned as is"""
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def metadata_to_dict(metadata: Dict[str, Any]) -> Dict[str, Any]:
    """Page metadata with camelCase keys for the downstream record"""
    return {camel_case(k): v for k, v in metadata.items()}
