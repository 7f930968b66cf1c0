"""
Continuity Signals
==================
Structural and typographic page measurements used to decide whether
content flows from one page into the next.

Only generic signals are used: heading ratios, text length, font
statistics and sentence boundaries. Nothing here depends on the words of
a particular publication.
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

from ..types import (
    Composite, ComposedPage, Page, SemanticType,
    dominant_font_family, weighted_average_font_size,
)


STOP_WORDS: FrozenSet[str] = frozenset({
    'a', 'about', 'after', 'all', 'also', 'an', 'and', 'any', 'are', 'as', 'at',
    'be', 'been', 'before', 'being', 'between', 'both', 'but', 'by', 'can',
    'could', 'did', 'do', 'does', 'each', 'for', 'from', 'had', 'has', 'have',
    'he', 'her', 'here', 'his', 'how', 'i', 'if', 'in', 'into', 'is', 'it',
    'its', 'more', 'most', 'much', 'must', 'no', 'not', 'of', 'on', 'one',
    'only', 'or', 'other', 'our', 'out', 'over', 'she', 'should', 'so',
    'some', 'such', 'than', 'that', 'the', 'their', 'them', 'then', 'there',
    'these', 'they', 'this', 'those', 'through', 'to', 'under', 'up', 'very',
    'was', 'we', 'were', 'what', 'when', 'where', 'which', 'while', 'who',
    'will', 'with', 'would', 'you', 'your',
})

CONNECTORS: FrozenSet[str] = frozenset({
    'and', 'but', 'or', 'nor', 'so', 'yet', 'however', 'therefore', 'thus',
    'moreover', 'also', 'furthermore', 'hence', 'then', 'meanwhile',
    'nevertheless', 'consequently', 'additionally',
})

_TERMINAL = re.compile(r"[.!?][\"'”’)\]]*\s*$")
_WORD = re.compile(r"[a-z0-9']+")


class ContentType(Enum):
    """Coarse page category; pages of different categories never continue"""
    COVER = "cover"
    SHORT_FORM = "short_form"
    LONG_FORM = "long_form"
    MIXED = "mixed"


@dataclass
class ContinuityConfig:
    """Configuration for page continuity analysis"""
    # Cover page
    cover_heading_ratio: float = 0.6
    cover_max_text_length: int = 1000
    cover_large_font_ratio: float = 2.1
    cover_blurb_max_length: int = 400

    # New-section signature on the next page
    section_scan_count: int = 3
    section_font_ratio: float = 1.5
    section_max_text_length: int = 100

    # Content type gate
    short_form_max_length: int = 500
    long_form_max_heading_ratio: float = 0.3

    # Signals
    flow_window_words: int = 12
    flow_min_shared_terms: int = 1
    flow_min_term_length: int = 4
    font_size_tolerance: float = 0.30
    heading_ratio_tolerance: float = 0.4
    paragraph_ratio_tolerance: float = 0.3
    type_distribution_tolerance: float = 0.6

    # Decision
    min_score: int = 2


@dataclass
class PageProfile:
    """Measurements of one page's text composites"""
    page_index: int
    composites: List[Composite] = field(default_factory=list)
    text: str = ""
    average_font_size: float = 0.0
    max_font_size: float = 0.0
    dominant_family: Optional[str] = None
    type_counts: Dict[SemanticType, int] = field(default_factory=dict)

    @property
    def composite_count(self) -> int:
        return len(self.composites)

    @property
    def text_length(self) -> int:
        return len(self.text)

    @property
    def heading_count(self) -> int:
        return sum(n for t, n in self.type_counts.items() if t.is_heading)

    @property
    def heading_ratio(self) -> float:
        if not self.composites:
            return 0.0
        return self.heading_count / len(self.composites)

    @property
    def paragraph_ratio(self) -> float:
        if not self.composites:
            return 0.0
        return self.type_counts.get(SemanticType.PARAGRAPH, 0) / len(self.composites)

    def type_distribution(self) -> Dict[SemanticType, float]:
        n = len(self.composites)
        if n == 0:
            return {}
        return {t: count / n for t, count in self.type_counts.items()}

    @property
    def last_paragraph(self) -> Optional[Composite]:
        """Last paragraph, or the last composite when there is none"""
        for comp in reversed(self.composites):
            if not comp.is_heading:
                return comp
        return self.composites[-1] if self.composites else None

    @property
    def first_paragraph(self) -> Optional[Composite]:
        for comp in self.composites:
            if not comp.is_heading:
                return comp
        return self.composites[0] if self.composites else None


def profile_page(page: Union[Page, ComposedPage]) -> PageProfile:
    """Measure a page"""
    composites = page.text_composites
    return PageProfile(
        page_index=page.index,
        composites=composites,
        text=" ".join(c.text.strip() for c in composites).strip(),
        average_font_size=weighted_average_font_size(composites) if composites else 0.0,
        max_font_size=max((c.font_size for c in composites), default=0.0),
        dominant_family=dominant_font_family(composites),
        type_counts=dict(Counter(c.semantic_type for c in composites)),
    )


# ============================================================
# Disqualifiers
# ============================================================

def is_cover_page(profile: PageProfile, config: ContinuityConfig) -> bool:
    """
    Cover pages stand alone.

    A page is a cover when it has no text, when it is mostly headings with
    little text, or when a very large title sits on top of a short blurb.
    """
    if not profile.composites:
        return True

    heading_heavy = (
        profile.heading_ratio > config.cover_heading_ratio and
        profile.text_length < config.cover_max_text_length
    )
    title_over_blurb = (
        profile.max_font_size >= profile.average_font_size * config.cover_large_font_ratio and
        profile.text_length < config.cover_blurb_max_length
    )
    return heading_heavy or title_over_blurb


def is_title_like(text: str) -> bool:
    """Starts with an uppercase letter or digit and has no trailing clause punctuation"""
    text = text.strip()
    if not text:
        return False
    if not (text[0].isupper() or text[0].isdigit()):
        return False
    return text[-1] not in ".,;:"


def has_new_section_signature(profile: PageProfile, config: ContinuityConfig) -> bool:
    """A short, large, title-like block among the first composites of the page"""
    limit = profile.average_font_size * config.section_font_ratio
    for comp in profile.composites[:config.section_scan_count]:
        text = comp.text.strip()
        if (comp.font_size > limit and
                len(text) < config.section_max_text_length and
                is_title_like(text)):
            return True
    return False


def content_type(profile: PageProfile, config: ContinuityConfig) -> ContentType:
    if is_cover_page(profile, config):
        return ContentType.COVER
    if profile.text_length < config.short_form_max_length:
        return ContentType.SHORT_FORM
    if profile.heading_ratio <= config.long_form_max_heading_ratio:
        return ContentType.LONG_FORM
    return ContentType.MIXED


# ============================================================
# Positive signals
# ============================================================

def ends_incomplete(text: str) -> bool:
    """No terminal sentence punctuation (closing quotes/brackets allowed)"""
    text = text.strip()
    return bool(text) and not _TERMINAL.search(text)


def starts_continuation(text: str) -> bool:
    """Starts lowercase or with a connector word"""
    text = text.strip()
    if not text:
        return False
    if text[0].isalpha() and text[0].islower():
        return True
    first = _WORD.findall(text[:40].lower())
    return bool(first) and first[0] in CONNECTORS


def shared_terms(tail: str, head: str, config: ContinuityConfig) -> FrozenSet[str]:
    """Content words shared by the end of one text and the start of another"""
    tail_words = _WORD.findall(tail.lower())[-config.flow_window_words:]
    head_words = _WORD.findall(head.lower())[:config.flow_window_words]
    common = set(tail_words) & set(head_words)
    return frozenset(
        w for w in common
        if w not in STOP_WORDS and len(w) >= config.flow_min_term_length
    )


def text_flow_signal(prev: PageProfile, nxt: PageProfile, config: ContinuityConfig) -> bool:
    last = prev.last_paragraph
    first = nxt.first_paragraph
    if last is None or first is None:
        return False
    if ends_incomplete(last.text) or starts_continuation(first.text):
        return True
    return len(shared_terms(last.text, first.text, config)) >= config.flow_min_shared_terms


def typography_signal(prev: PageProfile, nxt: PageProfile, config: ContinuityConfig) -> bool:
    if not prev.composites or not nxt.composites:
        return False
    size_diff = abs(prev.average_font_size - nxt.average_font_size) / prev.average_font_size
    same_family = prev.dominant_family is not None and prev.dominant_family == nxt.dominant_family
    similar_headings = abs(prev.heading_ratio - nxt.heading_ratio) < config.heading_ratio_tolerance
    return size_diff < config.font_size_tolerance or same_family or similar_headings


def distribution_distance(a: Dict[SemanticType, float], b: Dict[SemanticType, float]) -> float:
    """L1 distance between two type distributions"""
    keys = set(a) | set(b)
    return sum(abs(a.get(k, 0.0) - b.get(k, 0.0)) for k in keys)


def structural_signal(prev: PageProfile, nxt: PageProfile, config: ContinuityConfig) -> bool:
    if not prev.composites or not nxt.composites:
        return False
    similar_density = abs(prev.paragraph_ratio - nxt.paragraph_ratio) < config.paragraph_ratio_tolerance
    similar_types = (
        distribution_distance(prev.type_distribution(), nxt.type_distribution())
        <= config.type_distribution_tolerance
    )
    return similar_density and similar_types


def score_signals(
    prev: PageProfile,
    nxt: PageProfile,
    config: ContinuityConfig
) -> Tuple[bool, bool, bool]:
    """(text_flow, typography, structural)"""
    return (
        text_flow_signal(prev, nxt, config),
        typography_signal(prev, nxt, config),
        structural_signal(prev, nxt, config),
    )
