"""
Overlap Merge Stage
===================
Clusters spatially and typographically compatible fragments into composites.

Two fragments are compatible when their font sizes differ by at most 10%
and their boxes intersect after both are grown by an adaptive margin. The
margin grows with the font size relative to the page average, so large
headline runs merge generously while dense body text does not bleed across
column gutters.

Clusters are the transitive closure of that predicate: a fragment joins a
cluster if it is compatible with ANY current member.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..types import (
    Composite, ProcessingContext, TextFragment,
    weighted_average_font_size,
)

logger = logging.getLogger(__name__)


@dataclass
class MergeConfig:
    """Configuration for overlap merging"""
    font_size_tolerance: float = 0.10   # |a/b - 1|
    expansion_divisor: float = 3.5
    expansion_floor_ratio: float = 0.8  # floor = max(avg * ratio, min_floor)
    expansion_min_floor: float = 5.0
    expansion_ceiling: float = 15.0
    line_tolerance: float = 10.0        # same-line tolerance when ordering members


@dataclass
class MergeStats:
    """Per-page merge statistics for debugging"""
    page_index: int = 0
    fragments_in: int = 0
    composites_out: int = 0
    composed_count: int = 0

    def summary(self) -> str:
        return (
            f"Page {self.page_index}: fragments={self.fragments_in} -> "
            f"composites={self.composites_out} (composed={self.composed_count})"
        )


class OverlapMerger:
    """
    Merge fragments of one page into composites.

    Process:
    1. Page statistic: character-weighted average font size
    2. Seed a cluster with each unprocessed fragment and grow it to closure
    3. Order members top-to-bottom, left-to-right and build composites
    """

    def __init__(self, config: Optional[MergeConfig] = None):
        self.config = config or MergeConfig()
        self.last_stats = MergeStats()

    def merge(
        self,
        fragments: Sequence[TextFragment],
        page_index: int = 0,
        context: Optional[ProcessingContext] = None
    ) -> List[Composite]:
        """
        Merge fragments into composites.

        Args:
            fragments: All text fragments of one page
            page_index: Page the fragments belong to (used for ids)
            context: Run context providing composite ids

        Returns:
            List of Composite (singletons allowed), in seed order
        """
        fragments = list(fragments)
        self.last_stats = MergeStats(page_index=page_index, fragments_in=len(fragments))
        if not fragments:
            return []

        return self._cluster(fragments, page_index, context)

    def remerge(
        self,
        composites: Sequence[Composite],
        page_index: int = 0,
        context: Optional[ProcessingContext] = None
    ) -> List[Composite]:
        """
        Run the merge again over the source fragments of existing composites.

        The fragment set and the page statistic are the same as in the first
        pass, so a merged page comes back with the same grouping.
        """
        fragments = [f for c in composites for f in c.source_fragments]
        self.last_stats = MergeStats(page_index=page_index, fragments_in=len(fragments))
        if not fragments:
            return []

        return self._cluster(fragments, page_index, context)

    # =========================================================================
    # Predicate
    # =========================================================================

    def expansion(self, size_a: float, size_b: float, page_avg: float) -> float:
        """Adaptive margin applied to both boxes before the overlap test"""
        avg = (size_a + size_b) / 2
        raw = max(avg * avg / page_avg, avg) / self.config.expansion_divisor
        floor = max(avg * self.config.expansion_floor_ratio, self.config.expansion_min_floor)
        return min(max(raw, floor), self.config.expansion_ceiling)

    def font_sizes_compatible(self, size_a: float, size_b: float) -> bool:
        return abs(size_a / size_b - 1) <= self.config.font_size_tolerance

    def should_merge(self, a: TextFragment, b: TextFragment, page_avg: float) -> bool:
        """Merge predicate for two fragments"""
        if not self.font_sizes_compatible(a.font_size, b.font_size):
            return False
        margin = self.expansion(a.font_size, b.font_size, page_avg)
        return a.bbox.expanded(margin).intersects(b.bbox.expanded(margin))

    # =========================================================================
    # Clustering
    # =========================================================================

    def _cluster(
        self,
        fragments: List[TextFragment],
        page_index: int,
        context: Optional[ProcessingContext]
    ) -> List[Composite]:
        page_avg = weighted_average_font_size(fragments)
        groups = self._closure(fragments, page_avg)
        clusters = [[fragments[i] for i in group] for group in groups]
        logger.debug("page %d: %d fragments -> %d clusters", page_index, len(fragments), len(clusters))
        return self._build(clusters, page_index, context)

    def _closure(self, items: List[TextFragment], page_avg: float) -> List[List[int]]:
        """
        Group item indexes by transitive closure of should_merge.

        Each pass only tests the remaining items against the members added
        by the previous pass, so every pair is compared at most once.
        """
        processed = [False] * len(items)
        groups: List[List[int]] = []

        for seed in range(len(items)):
            if processed[seed]:
                continue
            processed[seed] = True
            group = [seed]
            frontier = [seed]

            while frontier:
                added: List[int] = []
                for j in range(len(items)):
                    if processed[j]:
                        continue
                    if any(self.should_merge(items[m], items[j], page_avg) for m in frontier):
                        processed[j] = True
                        added.append(j)
                group.extend(added)
                frontier = added

            groups.append(group)

        return groups

    def _build(
        self,
        clusters: List[List[TextFragment]],
        page_index: int,
        context: Optional[ProcessingContext]
    ) -> List[Composite]:
        context = context or ProcessingContext()
        composites = []
        for cluster in clusters:
            ordered = order_fragments(cluster, self.config.line_tolerance)
            composites.append(Composite.from_fragments(context.next_composite_id(page_index), ordered))

        self.last_stats.composites_out = len(composites)
        self.last_stats.composed_count = sum(1 for c in composites if c.composed)
        return composites


def order_fragments(fragments: Sequence[TextFragment], line_tolerance: float = 10.0) -> List[TextFragment]:
    """
    Order by (top, left) treating tops within line_tolerance of a line's
    first fragment as the same line.
    """
    by_top = sorted(fragments, key=lambda f: (f.bbox.top, f.bbox.left))
    lines: List[List[TextFragment]] = []
    for frag in by_top:
        if lines and frag.bbox.top - lines[-1][0].bbox.top <= line_tolerance:
            lines[-1].append(frag)
        else:
            lines.append([frag])

    ordered: List[TextFragment] = []
    for line in lines:
        ordered.extend(sorted(line, key=lambda f: f.bbox.left))
    return ordered


def merge_fragments(
    fragments: Sequence[TextFragment],
    page_index: int = 0,
    context: Optional[ProcessingContext] = None,
    config: Optional[MergeConfig] = None
) -> List[Composite]:
    """
    Convenience function for overlap merging.
    """
    merger = OverlapMerger(config)
    return merger.merge(fragments, page_index, context)
