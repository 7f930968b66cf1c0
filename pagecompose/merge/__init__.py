"""
Merge Module
============
Overlap-based clustering of fragments into composites.
"""

from .overlap import OverlapMerger, MergeConfig, MergeStats, merge_fragments, order_fragments

__all__ = ['OverlapMerger', 'MergeConfig', 'MergeStats', 'merge_fragments', 'order_fragments']
