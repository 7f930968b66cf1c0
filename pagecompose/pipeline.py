"""
Layout Pipeline
===============
Single entry point for running the complete page composition pipeline.
Orchestrates: PageInput -> [Clean] -> Merge -> Order -> Classify -> Continuity

Per-page work (merge, order, classify) shares no state between pages; the
continuity analyzer is the only step that must see pages in order.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .cleaning import ContentCleaner, CleanConfig
from .classify import TypeClassifier, ClassifyConfig
from .continuity import ContinuityAnalyzer, ContinuityConfig
from .errors import PageProcessingError
from .merge import OverlapMerger, MergeConfig
from .order import ColumnOrderer, ColumnConfig, interleave_elements
from .page_model import PageInput, build_page_input
from .types import ComposedPage, Page, ProcessingContext

logger = logging.getLogger(__name__)

OutputPage = Union[Page, ComposedPage]


@dataclass
class PipelineConfig:
    """Complete pipeline configuration"""
    # Stage configs
    clean_config: CleanConfig = field(default_factory=CleanConfig)
    merge_config: MergeConfig = field(default_factory=MergeConfig)
    column_config: ColumnConfig = field(default_factory=ColumnConfig)
    classify_config: ClassifyConfig = field(default_factory=ClassifyConfig)
    continuity_config: ContinuityConfig = field(default_factory=ContinuityConfig)

    # Feature toggles
    enable_cleaning: bool = False
    enable_continuity: bool = True

    # Debug
    debug: bool = False

    @classmethod
    def default(cls) -> 'PipelineConfig':
        """Merge, order, classify and compose continuous pages"""
        return cls()

    @classmethod
    def per_page_only(cls) -> 'PipelineConfig':
        """Per-page stages only; every page is emitted on its own"""
        return cls(enable_continuity=False)


@dataclass
class DebugBundle:
    """Debug information from pipeline run"""
    pages_in: int = 0
    outputs_count: int = 0
    composed_count: int = 0

    fragments_total: int = 0
    composites_total: int = 0
    malformed_fragments: int = 0
    removed_by_cleaning: int = 0

    column_counts: Dict[int, int] = field(default_factory=dict)
    type_counts: Dict[str, int] = field(default_factory=dict)
    merge_stats: List[str] = field(default_factory=list)

    continuity_reasons: Dict[str, int] = field(default_factory=dict)
    continuity_failures: int = 0
    failed_pages: List[int] = field(default_factory=list)

    def summary(self) -> str:
        """Generate summary string"""
        lines = [
            "=" * 60,
            "PAGE COMPOSITION DEBUG SUMMARY",
            "=" * 60,
            f"Pages In: {self.pages_in}",
            f"Outputs: {self.outputs_count} (composed: {self.composed_count})",
            "",
            f"Fragments: {self.fragments_total}",
            f"Malformed Fragments: {self.malformed_fragments}",
            f"Removed By Cleaning: {self.removed_by_cleaning}",
            f"Composites: {self.composites_total}",
            f"Multi-column Pages: {sorted(p for p, n in self.column_counts.items() if n > 1)}",
            "",
            "Semantic Types:",
        ]
        for name, count in sorted(self.type_counts.items()):
            lines.append(f"  {name}: {count}")

        lines.append("")
        lines.append("Continuity Decisions:")
        for reason, count in sorted(self.continuity_reasons.items(), key=lambda x: -x[1]):
            lines.append(f"  {reason}: {count}")
        lines.append(f"Continuity Failures: {self.continuity_failures}")
        lines.append(f"Failed Pages: {self.failed_pages}")

        if self.merge_stats:
            lines.append("")
            lines.append("Merge Per-Page Stats (first 10):")
            for stat in self.merge_stats[:10]:
                lines.append(f"  {stat}")

        lines.append("=" * 60)
        return "\n".join(lines)


class LayoutPipeline:
    """
    Main page composition pipeline.

    Usage:
        pipeline = LayoutPipeline()
        pages, debug = pipeline.run_from_inputs(page_inputs)
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig.default()

        # Initialize components
        self.cleaner = ContentCleaner(self.config.clean_config)
        self.merger = OverlapMerger(self.config.merge_config)
        self.orderer = ColumnOrderer(self.config.column_config)
        self.classifier = TypeClassifier(self.config.classify_config)

    def process_page(
        self,
        page_input: PageInput,
        context: Optional[ProcessingContext] = None,
        debug: Optional[DebugBundle] = None
    ) -> Page:
        """
        Run clean/merge/order/classify for one page.

        The stages succeed or fail together; any error is raised as
        PageProcessingError.
        """
        context = context or ProcessingContext()
        try:
            if self.config.enable_cleaning:
                page_input, report = self.cleaner.clean(page_input)
                if debug is not None:
                    debug.removed_by_cleaning += len(report.removed)

            composites = self.merger.merge(page_input.fragments, page_input.index, context)
            layout = self.orderer.analyze(composites)
            ordered = self.classifier.classify(layout.ordered)
            elements = interleave_elements(ordered, page_input.non_text)
        except Exception as e:
            raise PageProcessingError(page_input.index, e) from e

        if debug is not None:
            debug.fragments_total += len(page_input.fragments)
            debug.composites_total += len(ordered)
            debug.column_counts[page_input.index] = layout.column_count
            debug.merge_stats.append(self.merger.last_stats.summary())
            for comp in ordered:
                name = comp.semantic_type.value
                debug.type_counts[name] = debug.type_counts.get(name, 0) + 1

        return Page(
            index=page_input.index,
            width=page_input.width,
            height=page_input.height,
            title=page_input.title,
            ordered_elements=elements,
            metadata={
                "column_count": layout.column_count,
                "column_boundaries": list(layout.boundaries),
            },
        )

    def run_from_inputs(
        self,
        page_inputs: Iterable[PageInput],
        context: Optional[ProcessingContext] = None
    ) -> Tuple[List[OutputPage], DebugBundle]:
        """
        Run pipeline from normalized page inputs.

        Args:
            page_inputs: Pages in document order
            context: Run context; a fresh one is created when omitted

        Returns:
            Tuple of (output pages, debug_bundle)
        """
        context = context or ProcessingContext()
        debug = DebugBundle()

        # 1. Per-page stages
        pages: List[Page] = []
        for page_input in page_inputs:
            debug.pages_in += 1
            try:
                pages.append(self.process_page(page_input, context, debug))
            except PageProcessingError as e:
                logger.error("page processing failed, keeping non-text only: %s", e)
                context.note(str(e))
                debug.failed_pages.append(page_input.index)
                pages.append(Page(
                    index=page_input.index,
                    width=page_input.width,
                    height=page_input.height,
                    title=page_input.title,
                    ordered_elements=interleave_elements([], page_input.non_text),
                    metadata={"error": str(e.cause)},
                ))

        debug.malformed_fragments = context.malformed_fragments

        # 2. Continuity
        if self.config.enable_continuity:
            analyzer = ContinuityAnalyzer(self.config.continuity_config, context)
            outputs: List[OutputPage] = analyzer.compose(pages)
            debug.continuity_reasons = dict(Counter(d.reason for d in analyzer.decisions))
            debug.continuity_failures = len(analyzer.failures)
        else:
            outputs = list(pages)

        debug.outputs_count = len(outputs)
        debug.composed_count = sum(1 for p in outputs if isinstance(p, ComposedPage))

        if self.config.debug:
            logger.info("\n%s", debug.summary())

        return outputs, debug

    def run_from_records(
        self,
        records: Iterable[Mapping[str, Any]],
        context: Optional[ProcessingContext] = None
    ) -> Tuple[List[OutputPage], DebugBundle]:
        """
        Run pipeline from raw page records.

        Each record holds width, height, fragments and optionally
        nonText and title. Records are indexed in the order given.
        """
        context = context or ProcessingContext()
        inputs = [
            build_page_input(
                i,
                width=rec.get('width'),
                height=rec.get('height'),
                fragments=rec.get('fragments') or [],
                non_text=rec.get('nonText') or rec.get('non_text') or [],
                title=rec.get('title'),
                context=context,
            )
            for i, rec in enumerate(records)
        ]
        return self.run_from_inputs(inputs, context)


def run_layout_pipeline(
    pdf_path: str,
    config: Optional[PipelineConfig] = None
) -> Tuple[List[OutputPage], DebugBundle]:
    """
    Single entry point for running the pipeline on a PDF path.
    """
    import pdfplumber

    context = ProcessingContext()
    page_inputs: List[PageInput] = []

    with pdfplumber.open(pdf_path) as pdf:
        for i, page in enumerate(pdf.pages):
            page_inputs.append(PageInput.from_pdfplumber(page, i, context))

    logger.debug("loaded %d pages from %s", len(page_inputs), pdf_path)

    pipeline = LayoutPipeline(config)
    return pipeline.run_from_inputs(page_inputs, context)
