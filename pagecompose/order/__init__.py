"""
Order Module
============
Reading order: column detection and non-text interleaving.
"""

from .columns import (
    ColumnOrderer, ColumnConfig, ColumnLayout, detect_column_boundaries, order_composites,
)
from .interleave import interleave_elements

__all__ = [
    'ColumnOrderer', 'ColumnConfig', 'ColumnLayout',
    'detect_column_boundaries', 'order_composites', 'interleave_elements',
]
