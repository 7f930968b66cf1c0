"""
Page Continuity Analyzer
========================
Decides which consecutive pages belong to one flow of content and merges
them into composed pages.

The analyzer walks the pages in document order with exactly one open
group. For every page pair it applies:
1. Disqualifiers: a cover page, or a new-section signature on the next
   page, always breaks
2. Content-type gate: pages of different categories never continue
3. Positive signals: text flow, typography, structure; at least
   `min_score` of them, or text flow paired with another signal, continue

Scoring is best-effort: an exception while scoring a pair is logged and
the pair is treated as a break. Splitting related pages is acceptable,
splicing unrelated ones is not.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from ..errors import ContinuityHeuristicFailure
from ..types import ComposedPage, Page, PageElement, ProcessingContext, with_offset
from .signals import (
    ContinuityConfig, ContentType, PageProfile,
    content_type, has_new_section_signature, is_cover_page, profile_page, score_signals,
)

logger = logging.getLogger(__name__)

OutputPage = Union[Page, ComposedPage]


@dataclass
class ContinuityDecision:
    """
    Outcome for one page pair, with the evidence behind it.

    reason is one of: "continue", "cover_page", "new_section",
    "content_type_mismatch", "low_score", "heuristic_failure".
    """
    prev_index: int
    next_index: int
    continues: bool
    reason: str
    score: int = 0
    text_flow: bool = False
    typography: bool = False
    structural: bool = False
    prev_type: Optional[str] = None
    next_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prevIndex": self.prev_index,
            "nextIndex": self.next_index,
            "continues": self.continues,
            "reason": self.reason,
            "score": self.score,
            "signals": {
                "textFlow": self.text_flow,
                "typography": self.typography,
                "structural": self.structural,
            },
            "contentTypes": [self.prev_type, self.next_type],
        }


class ContinuityAnalyzer:
    """
    Score page pairs and compose continuous pages.

    Usage:
        analyzer = ContinuityAnalyzer()
        output = analyzer.compose(pages)
    """

    def __init__(
        self,
        config: Optional[ContinuityConfig] = None,
        context: Optional[ProcessingContext] = None
    ):
        self.config = config or ContinuityConfig()
        self.context = context or ProcessingContext()
        self.decisions: List[ContinuityDecision] = []
        self.failures: List[ContinuityHeuristicFailure] = []

    # =========================================================================
    # Pair scoring
    # =========================================================================

    def evaluate(self, prev: Page, nxt: Page) -> ContinuityDecision:
        """
        Score one page pair. May raise; use decide() for the safe version.
        """
        cfg = self.config
        prev_profile = profile_page(prev)
        next_profile = profile_page(nxt)

        decision = ContinuityDecision(
            prev_index=prev.index,
            next_index=nxt.index,
            continues=False,
            reason="low_score",
        )

        if is_cover_page(prev_profile, cfg):
            decision.reason = "cover_page"
            decision.prev_type = ContentType.COVER.value
            return decision

        if has_new_section_signature(next_profile, cfg):
            decision.reason = "new_section"
            return decision

        prev_type = content_type(prev_profile, cfg)
        next_type = content_type(next_profile, cfg)
        decision.prev_type = prev_type.value
        decision.next_type = next_type.value
        if prev_type is not next_type:
            decision.reason = "content_type_mismatch"
            return decision

        flow, typography, structural = score_signals(prev_profile, next_profile, cfg)
        decision.text_flow = flow
        decision.typography = typography
        decision.structural = structural
        decision.score = sum([flow, typography, structural])

        strong_pair = flow and (typography or structural)
        if decision.score >= cfg.min_score or strong_pair:
            decision.continues = True
            decision.reason = "continue"
        return decision

    def decide(self, prev: Page, nxt: Page) -> ContinuityDecision:
        """Score one page pair; any scoring error becomes a break"""
        try:
            return self.evaluate(prev, nxt)
        except Exception as e:
            failure = ContinuityHeuristicFailure(prev.index, nxt.index, e)
            self.failures.append(failure)
            self.context.note(str(failure))
            logger.warning("continuity scoring failed, breaking: %s", failure)
            return ContinuityDecision(
                prev_index=prev.index,
                next_index=nxt.index,
                continues=False,
                reason="heuristic_failure",
            )

    def has_content_continuity(self, prev: Page, nxt: Page) -> bool:
        """True when nxt continues the content of prev"""
        return self.decide(prev, nxt).continues

    # =========================================================================
    # Grouping
    # =========================================================================

    def compose(self, pages: Sequence[Page]) -> List[OutputPage]:
        """
        Group consecutive continuous pages.

        Args:
            pages: Classified pages in document order

        Returns:
            Pages and composed pages in document order
        """
        self.decisions = []
        grouper = PageGrouper(self)
        output: List[OutputPage] = []
        for page in pages:
            output.extend(grouper.push(page))
        output.extend(grouper.flush())

        composed = sum(1 for p in output if isinstance(p, ComposedPage))
        logger.info("continuity: %d pages -> %d outputs (%d composed)", len(pages), len(output), composed)
        return output

    def compose_group(
        self,
        group: Sequence[Page],
        decisions: Sequence[ContinuityDecision] = ()
    ) -> OutputPage:
        """
        Finalize a group. A single page passes through unchanged; several
        pages become one ComposedPage with later pages shifted down by the
        heights of the pages before them.
        """
        if len(group) == 1:
            return group[0]

        first, last = group[0], group[-1]
        elements: List[PageElement] = []
        offset = 0.0
        for page in group:
            if offset:
                elements.extend(with_offset(el, offset) for el in page.ordered_elements)
            else:
                elements.extend(page.ordered_elements)
            offset += page.height

        source_indexes = tuple(p.index for p in group)
        metadata = dict(first.metadata)
        metadata.update({
            "composed_from_page_indexes": list(source_indexes),
            "is_composed": True,
            "original_heights": [p.height for p in group],
            "continuity": [d.to_dict() for d in decisions],
        })

        return ComposedPage(
            index=first.index,
            width=max(p.width for p in group),
            height=offset,
            title=f"{first.title} - {last.title}",
            ordered_elements=tuple(elements),
            source_page_indexes=source_indexes,
            metadata=metadata,
        )


class PageGrouper:
    """
    Incremental form of ContinuityAnalyzer.compose().

    push() returns whatever got finalized by the new page. A caller may
    stop pushing at any time; everything already returned stays valid and
    flush() finalizes the open group.
    """

    def __init__(self, analyzer: ContinuityAnalyzer):
        self.analyzer = analyzer
        self.group: List[Page] = []
        self.group_decisions: List[ContinuityDecision] = []

    def push(self, page: Page) -> List[OutputPage]:
        if not self.group:
            self.group = [page]
            return []

        decision = self.analyzer.decide(self.group[-1], page)
        self.analyzer.decisions.append(decision)
        logger.debug(
            "pages %d->%d: %s (score=%d)",
            decision.prev_index, decision.next_index, decision.reason, decision.score,
        )

        if decision.continues:
            self.group.append(page)
            self.group_decisions.append(decision)
            return []

        finished = self.flush()
        self.group = [page]
        return finished

    def flush(self) -> List[OutputPage]:
        if not self.group:
            return []
        result = self.analyzer.compose_group(self.group, self.group_decisions)
        self.group = []
        self.group_decisions = []
        return [result]


def compose_pages(
    pages: Sequence[Page],
    config: Optional[ContinuityConfig] = None
) -> List[OutputPage]:
    """
    Convenience function for page composition.
    """
    return ContinuityAnalyzer(config).compose(pages)
