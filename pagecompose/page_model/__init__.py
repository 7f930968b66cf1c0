"""
Page Model Module
=================
Normalization of upstream parser records into core page inputs.
"""

from .model import (
    PageInput, normalize_fragment, normalize_non_text, build_page_input,
    is_meaningful_text, format_fragment_html,
)

__all__ = [
    'PageInput', 'normalize_fragment', 'normalize_non_text', 'build_page_input',
    'is_meaningful_text', 'format_fragment_html',
]
