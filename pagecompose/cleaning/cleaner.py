"""
Content Cleaning
================
Optional pre-merge filter that keeps only the main content area of a page.

Drops running headers, footers and page numbers (elements whose center is
outside the margins), collapses whitespace, removes isolated characters
and small decorative images.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from ..page_model import PageInput
from ..types import BoundingBox, ImageElement, NonTextElement, TextFragment

logger = logging.getLogger(__name__)

_ISOLATED = re.compile(r"^[\w\W](\s+[\w\W])*$")


@dataclass
class CleanConfig:
    """Configuration for content cleaning"""
    top_margin_percent: float = 0.1
    bottom_margin_percent: float = 0.1
    side_margin_percent: float = 0.05
    min_text_length: int = 3
    remove_isolated_characters: bool = True
    isolated_max_length: int = 20
    min_image_width: float = 50.0
    min_image_height: float = 50.0
    min_image_area: float = 2500.0


@dataclass
class CleaningReport:
    """What the cleaner kept and removed for one page"""
    page_index: int = 0
    content_area: Optional[BoundingBox] = None
    kept: int = 0
    removed: List[Tuple[str, str]] = field(default_factory=list)  # (text or id, reason)

    def summary(self) -> str:
        return f"Page {self.page_index}: kept={self.kept} removed={len(self.removed)}"


class ContentCleaner:
    """
    Filter a page input down to its content area.
    """

    def __init__(self, config: Optional[CleanConfig] = None):
        self.config = config or CleanConfig()

    def content_area(self, width: float, height: float) -> BoundingBox:
        top = height * self.config.top_margin_percent
        bottom = height - height * self.config.bottom_margin_percent
        side = width * self.config.side_margin_percent
        return BoundingBox(top=top, left=side, width=width - 2 * side, height=bottom - top)

    def clean(self, page: PageInput) -> Tuple[PageInput, CleaningReport]:
        """
        Clean one page.

        Returns:
            Tuple of (cleaned page input, report)
        """
        area = self.content_area(page.width, page.height)
        report = CleaningReport(page_index=page.index, content_area=area)

        fragments: List[TextFragment] = []
        for frag in page.fragments:
            reason = self._reject_fragment(frag, area)
            if reason:
                report.removed.append((frag.text, reason))
                continue
            text = " ".join(frag.text.split())
            fragments.append(frag if text == frag.text else replace(frag, text=text))

        non_text: List[NonTextElement] = []
        for el in page.non_text:
            reason = self._reject_non_text(el, area)
            if reason:
                report.removed.append((el.id, reason))
                continue
            non_text.append(el)

        report.kept = len(fragments) + len(non_text)
        if report.removed:
            logger.debug(report.summary())

        return replace(page, fragments=fragments, non_text=non_text), report

    def _reject_fragment(self, frag: TextFragment, area: BoundingBox) -> Optional[str]:
        if not _center_inside(frag.bbox, area):
            return "outside_content_area"
        text = frag.text.strip()
        if len(text) < self.config.min_text_length:
            return "too_short"
        if (self.config.remove_isolated_characters and
                len(text) <= self.config.isolated_max_length and
                _ISOLATED.match(text)):
            return "isolated_characters"
        return None

    def _reject_non_text(self, el: NonTextElement, area: BoundingBox) -> Optional[str]:
        if not _center_inside(el.bbox, area):
            return "outside_content_area"
        if isinstance(el, ImageElement):
            box = el.bbox
            if (box.width < self.config.min_image_width or
                    box.height < self.config.min_image_height or
                    box.width * box.height < self.config.min_image_area):
                return "decorative_image"
        return None


def _center_inside(box: BoundingBox, area: BoundingBox) -> bool:
    return (area.left <= box.center_x <= area.right and
            area.top <= box.center_y <= area.bottom)


def clean_fragments(
    page: PageInput,
    config: Optional[CleanConfig] = None
) -> PageInput:
    """
    Convenience function for content cleaning.
    """
    cleaned, _ = ContentCleaner(config).clean(page)
    return cleaned
