"""
Type Classification Stage
=========================
Labels composites as heading levels 1-5 or paragraph.

Thresholds are multiples of the page's own character-weighted average
font size, recomputed over the merged composites. A block needs both a
larger-than-average font and fewer than `max_heading_words` words to be
a heading; a long pull-quote in a big font stays a paragraph.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..types import Composite, SemanticType, weighted_average_font_size


@dataclass
class ClassifyConfig:
    """Configuration for heading classification"""
    # level -> multiple of the page average font size
    heading_ratios: Dict[int, float] = field(default_factory=lambda: {
        1: 2.10,
        2: 1.75,
        3: 1.50,
        4: 1.25,
        5: 1.10,
    })
    max_heading_words: int = 15  # exclusive


@dataclass
class Thresholds:
    """Absolute heading thresholds for one page"""
    page_average: float
    by_level: Dict[int, float]

    def level_for(self, font_size: float) -> int:
        """Highest heading level whose threshold the size reaches, else 5"""
        for level in sorted(self.by_level):
            if font_size >= self.by_level[level]:
                return level
        return 5


class TypeClassifier:
    """
    Assign a SemanticType to every composite of a page.

    Composites are annotated in place; the same list is returned.
    """

    def __init__(self, config: Optional[ClassifyConfig] = None):
        self.config = config or ClassifyConfig()

    def thresholds(self, composites: Sequence[Composite]) -> Thresholds:
        avg = weighted_average_font_size(composites)
        return Thresholds(
            page_average=avg,
            by_level={lvl: avg * ratio for lvl, ratio in self.config.heading_ratios.items()},
        )

    def classify(self, composites: List[Composite]) -> List[Composite]:
        """
        Classify composites of one page.

        Args:
            composites: Ordered composites of the page

        Returns:
            The same composites with semantic_type set
        """
        if not composites:
            return composites

        th = self.thresholds(composites)
        for comp in composites:
            comp.semantic_type = self.classify_one(comp.font_size, comp.word_count, th)
        return composites

    def classify_one(self, font_size: float, word_count: int, th: Thresholds) -> SemanticType:
        """Pure decision from size and word count"""
        if font_size > th.page_average and word_count < self.config.max_heading_words:
            return SemanticType.heading(th.level_for(font_size))
        return SemanticType.PARAGRAPH


def classify_composites(
    composites: List[Composite],
    config: Optional[ClassifyConfig] = None
) -> List[Composite]:
    """
    Convenience function for classification.
    """
    return TypeClassifier(config).classify(composites)
