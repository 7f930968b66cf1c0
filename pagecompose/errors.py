"""
Error Types
===========
Every error is scoped to the smallest affected unit (fragment, page or
page pair) and handled there; none of them aborts a whole document.
"""


class LayoutError(Exception):
    """Base class for page composition errors"""


class MalformedFragment(LayoutError):
    """A fragment record has missing or invalid geometry or font data"""

    def __init__(self, field_name: str, value=None):
        super().__init__(f"invalid {field_name}: {value!r}")
        self.field_name = field_name
        self.value = value


class PageProcessingError(LayoutError):
    """Merge, order or classify failed for a page"""

    def __init__(self, page_index: int, cause: Exception):
        super().__init__(f"page {page_index}: {cause}")
        self.page_index = page_index
        self.cause = cause


class ContinuityHeuristicFailure(LayoutError):
    """Scoring a page pair raised; the pair is treated as a break"""

    def __init__(self, prev_index: int, next_index: int, cause: Exception):
        super().__init__(f"pages {prev_index}->{next_index}: {cause}")
        self.prev_index = prev_index
        self.next_index = next_index
        self.cause = cause
