"""
Page Composition Engine
=======================
Turns positioned text fragments into reading-order heading/paragraph
blocks and merges pages whose content flows continuously.

Architecture:
- page_model: Normalization of parser records into page inputs
- cleaning: Optional content-area filtering
- merge: Overlap clustering of fragments into composites
- order: Column detection and reading order
- classify: Heading/paragraph labelling
- continuity: Cross-page flow detection and page composition

Usage:
    from pagecompose import LayoutPipeline
    pipeline = LayoutPipeline()
    pages, debug = pipeline.run_from_inputs(page_inputs)
"""

from .types import (
    BoundingBox,
    TextFragment,
    SemanticType,
    Composite,
    ImageElement,
    LinkElement,
    Page,
    ComposedPage,
    ProcessingContext,
)
from .errors import (
    LayoutError,
    MalformedFragment,
    PageProcessingError,
    ContinuityHeuristicFailure,
)
from .page_model import PageInput, build_page_input
from .pipeline import LayoutPipeline, PipelineConfig, DebugBundle, run_layout_pipeline

__all__ = [
    'BoundingBox',
    'TextFragment',
    'SemanticType',
    'Composite',
    'ImageElement',
    'LinkElement',
    'Page',
    'ComposedPage',
    'ProcessingContext',
    'LayoutError',
    'MalformedFragment',
    'PageProcessingError',
    'ContinuityHeuristicFailure',
    'PageInput',
    'build_page_input',
    'LayoutPipeline',
    'PipelineConfig',
    'DebugBundle',
    'run_layout_pipeline',
]

__version__ = '1.0.0'
