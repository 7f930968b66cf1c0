"""
Page Input Model
================
Normalizes upstream parser records into fully populated core types.

This is the only place that deals with missing or malformed data: every
TextFragment leaving this module has finite geometry and a positive font
size, so the merge/order/classify stages never need to null-check.
"""

import html
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from ..errors import MalformedFragment
from ..types import (
    BoundingBox, TextFragment, ImageElement, LinkElement, NonTextElement,
    ProcessingContext, DEFAULT_FONT_SIZE,
)

logger = logging.getLogger(__name__)

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_NON_PRINTABLE = re.compile(r"[^\x20-\x7E\u00A0-\uFFFF]")


@dataclass
class PageInput:
    """
    Everything the core needs for one page, fully materialized.
    """
    index: int  # 0-indexed
    width: float
    height: float
    title: str
    fragments: List[TextFragment] = field(default_factory=list)
    non_text: List[NonTextElement] = field(default_factory=list)

    @classmethod
    def from_pdfplumber(
        cls,
        page: Any,
        index: int,
        context: Optional[ProcessingContext] = None
    ) -> 'PageInput':
        """
        Create from a pdfplumber page.

        Words carry size and fontname via extract_words(extra_attrs=...);
        images and hyperlinks become non-text elements.
        """
        words = page.extract_words(extra_attrs=["size", "fontname"])
        records = [{
            'text': w.get('text', ''),
            'boundingBox': _bbox_from_plumber(w),
            'fontSize': w.get('size'),
            'fontFamily': w.get('fontname'),
        } for w in words]

        non_text: List[Dict[str, Any]] = []
        for i, img in enumerate(page.images or []):
            non_text.append({
                'type': 'image',
                'id': f"p{index}_img{i + 1}",
                'boundingBox': _bbox_from_plumber(img),
                'src': img.get('name'),
            })
        for i, link in enumerate(page.hyperlinks or []):
            non_text.append({
                'type': 'link',
                'id': f"p{index}_link{i + 1}",
                'boundingBox': _bbox_from_plumber(link),
                'url': link.get('uri'),
            })

        return build_page_input(
            index,
            width=page.width or 612.0,
            height=page.height or 792.0,
            fragments=records,
            non_text=non_text,
            context=context,
        )


# ============================================================
# Fragment normalization
# ============================================================

def normalize_fragment(
    record: Union[TextFragment, Mapping[str, Any]],
    context: Optional[ProcessingContext] = None
) -> TextFragment:
    """
    Turn a raw fragment record into a well-formed TextFragment.

    Accepted keys: text, boundingBox|bbox, fontSize|font_size|size,
    fontFamily|font_family|fontname.

    Bad geometry becomes a zero-size box at the page origin, a bad font
    size becomes 12. The fragment is never dropped here.
    """
    if isinstance(record, TextFragment):
        return record

    text = clean_text(record.get('text'))
    font_family = _coerce_font_family(_first(record, 'fontFamily', 'font_family', 'fontname'))

    try:
        bbox = _coerce_bbox(_first(record, 'boundingBox', 'bbox'))
    except MalformedFragment as e:
        logger.debug("fragment %r: %s, using zero box", text[:20], e)
        if context is not None:
            context.malformed_fragments += 1
        bbox = BoundingBox()

    try:
        font_size = _coerce_font_size(_first(record, 'fontSize', 'font_size', 'size'))
    except MalformedFragment as e:
        logger.debug("fragment %r: %s, using %.0f", text[:20], e, DEFAULT_FONT_SIZE)
        if context is not None:
            context.malformed_fragments += 1
        font_size = DEFAULT_FONT_SIZE

    return TextFragment(
        text=text,
        bbox=bbox,
        font_size=font_size,
        font_family=font_family,
        formatted_text=format_fragment_html(text, font_family),
    )


def normalize_non_text(
    record: Union[NonTextElement, Mapping[str, Any]],
    fallback_id: str
) -> NonTextElement:
    """Normalize an image or link record; bad geometry becomes a zero box"""
    if isinstance(record, (ImageElement, LinkElement)):
        return record

    try:
        bbox = _coerce_bbox(_first(record, 'boundingBox', 'bbox'))
    except MalformedFragment:
        bbox = BoundingBox()

    element_id = str(record.get('id') or fallback_id)
    if record.get('type') == 'link':
        return LinkElement(id=element_id, bbox=bbox, url=record.get('url') or record.get('uri'))
    return ImageElement(id=element_id, bbox=bbox, src=record.get('src') or record.get('data'))


def build_page_input(
    index: int,
    width: float,
    height: float,
    fragments: Iterable[Union[TextFragment, Mapping[str, Any]]],
    non_text: Iterable[Union[NonTextElement, Mapping[str, Any]]] = (),
    title: Optional[str] = None,
    context: Optional[ProcessingContext] = None
) -> PageInput:
    """
    Build a PageInput from raw records.

    Args:
        index: 0-indexed page number
        width: Page width in points
        height: Page height in points
        fragments: Text fragment records (order irrelevant)
        non_text: Image/link records
        title: Page title, defaults to "Page N" (1-indexed)
        context: Run context that counts malformed fragments

    Returns:
        PageInput with meaningful fragments only
    """
    normalized: List[TextFragment] = []
    for record in fragments:
        frag = normalize_fragment(record, context)
        if is_meaningful_text(frag.text):
            normalized.append(frag)

    elements = [
        normalize_non_text(rec, fallback_id=f"p{index}_nt{i + 1}")
        for i, rec in enumerate(non_text)
    ]

    return PageInput(
        index=index,
        width=_positive_or(width, 612.0),
        height=_positive_or(height, 792.0),
        title=title if title is not None else f"Page {index + 1}",
        fragments=normalized,
        non_text=elements,
    )


# ============================================================
# Text helpers
# ============================================================

def clean_text(raw: Any) -> str:
    """Coerce to str and strip control characters"""
    if raw is None:
        return ""
    return _CONTROL_CHARS.sub("", str(raw))


def is_meaningful_text(text: str) -> bool:
    """
    False for empty, whitespace-only or control-only text and for a lone
    punctuation/symbol character.
    """
    if not text or not text.strip():
        return False
    cleaned = _NON_PRINTABLE.sub("", text).strip()
    if not cleaned:
        return False
    if len(cleaned) < 2 and re.fullmatch(r"[\s\W]", cleaned):
        return False
    return True


def is_bold_font(font_name: Optional[str]) -> bool:
    """Bold by font name; "Black" faces are separate typefaces, not bold"""
    if not font_name:
        return False
    name = font_name.lower()
    if 'black' in name:
        return False
    return 'bold' in name or 'heavy' in name


def is_italic_font(font_name: Optional[str]) -> bool:
    if not font_name:
        return False
    name = font_name.lower()
    return 'italic' in name or 'oblique' in name or '-it' in name


def format_fragment_html(text: str, font_family: Optional[str]) -> str:
    """HTML-escaped text wrapped in <strong>/<em> according to the font name"""
    if not text:
        return text
    out = html.escape(text)
    if is_bold_font(font_family):
        out = f"<strong>{out}</strong>"
    if is_italic_font(font_family):
        out = f"<em>{out}</em>"
    return out


# ============================================================
# Coercion
# ============================================================

def _first(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def _finite(value: Any, field_name: str) -> float:
    try:
        num = float(value)
    except (TypeError, ValueError):
        raise MalformedFragment(field_name, value)
    if not math.isfinite(num):
        raise MalformedFragment(field_name, value)
    return num


def _coerce_bbox(raw: Any) -> BoundingBox:
    if isinstance(raw, BoundingBox):
        return raw
    if not isinstance(raw, Mapping):
        raise MalformedFragment('boundingBox', raw)

    if 'x0' in raw and 'x1' in raw:
        left = _finite(raw.get('x0'), 'x0')
        top = _finite(raw.get('top'), 'top')
        width = _finite(raw.get('x1'), 'x1') - left
        height = _finite(raw.get('bottom'), 'bottom') - top
    else:
        top = _finite(raw.get('top', raw.get('y')), 'top')
        left = _finite(raw.get('left', raw.get('x')), 'left')
        width = _finite(raw.get('width'), 'width')
        height = _finite(raw.get('height'), 'height')

    if width < 0 or height < 0:
        raise MalformedFragment('boundingBox', raw)
    if width == 0 and height == 0:
        raise MalformedFragment('boundingBox', raw)
    return BoundingBox(top=top, left=left, width=width, height=height)


def _coerce_font_size(raw: Any) -> float:
    size = _finite(raw, 'fontSize')
    if size <= 0:
        raise MalformedFragment('fontSize', raw)
    return size


def _coerce_font_family(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    name = str(raw).strip()
    # pdfplumber reports subset fonts as "ABCDEF+Name"
    if re.match(r"^[A-Z]{6}\+", name):
        name = name[7:]
    return name or None


def _bbox_from_plumber(obj: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        'x0': obj.get('x0'),
        'x1': obj.get('x1'),
        'top': obj.get('top'),
        'bottom': obj.get('bottom'),
    }


def _positive_or(value: Any, default: float) -> float:
    try:
        num = float(value)
    except (TypeError, ValueError):
        return default
    return num if math.isfinite(num) and num > 0 else default
