"""
Column Order Stage
==================
Puts a page's composites into reading order.

Column boundaries are found by beam scanning: composites are swept left to
right and every horizontal gap of at least `min_gap` between one
composite's right edge and the next one's left edge yields a boundary at
the gap midpoint. No column count is assumed up front.

Columns are emitted left to right, each top to bottom.
"""

import bisect
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..types import Composite

logger = logging.getLogger(__name__)


@dataclass
class ColumnConfig:
    """Configuration for column detection"""
    min_gap: float = 15.0


@dataclass
class ColumnLayout:
    """Result of column detection for one page"""
    boundaries: List[float] = field(default_factory=list)
    columns: List[List[Composite]] = field(default_factory=list)

    @property
    def column_count(self) -> int:
        return len(self.boundaries) + 1

    @property
    def is_multi_column(self) -> bool:
        return bool(self.boundaries)

    @property
    def ordered(self) -> List[Composite]:
        return [c for column in self.columns for c in column]


def _reading_key(c: Composite):
    return (c.bbox.top, c.bbox.left)


class ColumnOrderer:
    """
    Detect columns and order composites for reading.

    Usage:
        orderer = ColumnOrderer()
        layout = orderer.analyze(composites)
        ordered = layout.ordered
    """

    def __init__(self, config: Optional[ColumnConfig] = None):
        self.config = config or ColumnConfig()

    def detect_boundaries(self, composites: Sequence[Composite]) -> List[float]:
        """
        Scan adjacent composites (sorted by left edge) for wide gaps.

        Returns:
            Sorted boundary x positions (gap midpoints)
        """
        by_left = sorted(composites, key=lambda c: (c.bbox.left, c.bbox.top))
        boundaries: List[float] = []
        if not by_left:
            return boundaries

        # Right edge of everything scanned so far; a narrow block must not
        # open a false gap inside a wider column.
        reach = by_left[0].bbox.right
        for nxt in by_left[1:]:
            gap = nxt.bbox.left - reach
            if gap >= self.config.min_gap:
                boundaries.append(reach + gap / 2)
            reach = max(reach, nxt.bbox.right)
        return sorted(set(boundaries))

    def analyze(self, composites: Sequence[Composite]) -> ColumnLayout:
        """Detect columns and bucket composites into them"""
        boundaries = self.detect_boundaries(composites)

        if not boundaries:
            return ColumnLayout(boundaries=[], columns=[sorted(composites, key=_reading_key)])

        columns = self.assign_columns(composites, boundaries)
        logger.debug("detected %d columns at %s", len(columns), [round(b, 1) for b in boundaries])
        return ColumnLayout(boundaries=boundaries, columns=columns)

    def assign_columns(
        self,
        composites: Sequence[Composite],
        boundaries: Sequence[float]
    ) -> List[List[Composite]]:
        """
        Bucket composites by horizontal center, each bucket sorted top to bottom.

        A center exactly on a boundary goes to the left column.
        """
        columns: List[List[Composite]] = [[] for _ in range(len(boundaries) + 1)]
        for comp in composites:
            columns[bisect.bisect_left(boundaries, comp.bbox.center_x)].append(comp)
        return [sorted(col, key=_reading_key) for col in columns]

    def order(self, composites: Sequence[Composite]) -> List[Composite]:
        """Composites in reading order"""
        return self.analyze(composites).ordered


def detect_column_boundaries(
    composites: Sequence[Composite],
    config: Optional[ColumnConfig] = None
) -> List[float]:
    """
    Convenience function for boundary detection.
    """
    return ColumnOrderer(config).detect_boundaries(composites)


def order_composites(
    composites: Sequence[Composite],
    config: Optional[ColumnConfig] = None
) -> List[Composite]:
    """
    Convenience function for reading-order sorting.
    """
    return ColumnOrderer(config).order(composites)
