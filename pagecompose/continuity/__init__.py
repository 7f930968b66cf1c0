"""
Continuity Module
=================
Cross-page flow detection and page composition.
"""

from .signals import ContinuityConfig, ContentType, PageProfile, profile_page
from .analyzer import (
    ContinuityAnalyzer, ContinuityDecision, PageGrouper, compose_pages,
)

__all__ = [
    'ContinuityConfig', 'ContentType', 'PageProfile', 'profile_page',
    'ContinuityAnalyzer', 'ContinuityDecision', 'PageGrouper', 'compose_pages',
]
