"""
Classify Module
===============
Heading/paragraph labelling from page-relative font statistics.
"""

from .headings import TypeClassifier, ClassifyConfig, Thresholds, classify_composites

__all__ = ['TypeClassifier', 'ClassifyConfig', 'Thresholds', 'classify_composites']
