"""
Builders for synthetic pages used across the test modules.
"""

from typing import List, Optional, Sequence

from pagecompose.types import (
    BoundingBox, Composite, Page, SemanticType, TextFragment,
)


def frag(text, left, top, width=100.0, height=12.0, size=12.0, family="Times-Roman") -> TextFragment:
    return TextFragment(
        text=text,
        bbox=BoundingBox(top=top, left=left, width=width, height=height),
        font_size=size,
        font_family=family,
    )


def comp(text, left, top, width=200.0, height=40.0, size=10.0,
         family="Times-Roman", kind=SemanticType.PARAGRAPH, cid="c") -> Composite:
    c = Composite.from_fragments(cid, [frag(text, left, top, width, height, size, family)])
    c.semantic_type = kind
    return c


def paragraph_lines(lines: Sequence[str], top: float, left: float = 72.0, width: float = 450.0,
                    size: float = 12.0, leading: float = 14.0, family: str = "Times-Roman") -> List[dict]:
    """One raw fragment record per line, stacked with the given leading"""
    return [{
        'text': line,
        'boundingBox': {'top': top + i * leading, 'left': left, 'width': width, 'height': size},
        'fontSize': size,
        'fontFamily': family,
    } for i, line in enumerate(lines)]


def make_page(index: int, composites: Sequence[Composite], height: float = 792.0,
              title: Optional[str] = None) -> Page:
    return Page(
        index=index,
        width=612.0,
        height=height,
        title=title or f"Page {index + 1}",
        ordered_elements=list(composites),
    )


def body_page(index: int, paragraphs: Sequence[str], size: float = 10.0,
              family: str = "Times-Roman", start_top: float = 80.0) -> Page:
    """Page of classified paragraph composites stacked top to bottom"""
    comps = [
        comp(text, 72, start_top + i * 60, width=450, size=size, family=family, cid=f"p{index}_c{i}")
        for i, text in enumerate(paragraphs)
    ]
    return make_page(index, comps)
