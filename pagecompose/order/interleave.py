"""
Non-text Interleave
===================
Places images and links into the ordered text sequence by vertical position.
"""

from typing import List, Sequence

from ..types import Composite, NonTextElement, PageElement

# A non-text element goes before a composite unless its top is more than
# this far below the composite's top.
TOP_TOLERANCE = 10.0


def interleave_elements(
    composites: Sequence[Composite],
    non_text: Sequence[NonTextElement],
    tolerance: float = TOP_TOLERANCE
) -> List[PageElement]:
    """
    Merge non-text elements into composites that are already in reading order.

    The composite order is never changed; non-text elements are taken in
    (top, left) order and each is emitted before the first remaining
    composite whose top + tolerance is not smaller than its own top.
    """
    pending = sorted(non_text, key=lambda el: (el.bbox.top, el.bbox.left))
    result: List[PageElement] = []
    i = 0

    for comp in composites:
        while i < len(pending) and pending[i].bbox.top <= comp.bbox.top + tolerance:
            result.append(pending[i])
            i += 1
        result.append(comp)

    result.extend(pending[i:])
    return result
