"""
Cleaning Module
===============
Content-area filtering applied before merging (disabled by default).
"""

from .cleaner import ContentCleaner, CleanConfig, CleaningReport, clean_fragments

__all__ = ['ContentCleaner', 'CleanConfig', 'CleaningReport', 'clean_fragments']
