"""
End-to-end tests for the layout pipeline
"""

import unittest
import sys
import os
from unittest.mock import MagicMock, patch

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pagecompose import LayoutPipeline, PipelineConfig, run_layout_pipeline
from pagecompose.types import ComposedPage, ImageElement, Page, ProcessingContext, SemanticType
from tests.builders import paragraph_lines


LINE = "This paragraph line carries ordinary body text about the harbour restoration works"


def heading(text, top, size=28.0):
    return {
        'text': text,
        'boundingBox': {'top': top, 'left': 72, 'width': 200, 'height': size},
        'fontSize': size,
        'fontFamily': 'Times-Bold',
    }


def first_page_record():
    fragments = [heading("Introduction", 50)]
    fragments += paragraph_lines([LINE, LINE, LINE + "."], top=110)
    fragments += paragraph_lines([LINE, LINE, LINE + "."], top=190)
    fragments += paragraph_lines([LINE, LINE, "and the engineers who planned the new sea wall relied on the"], top=270)
    return {
        'width': 612,
        'height': 792,
        'fragments': fragments,
        'nonText': [{'type': 'image', 'id': 'fig1',
                     'boundingBox': {'top': 350, 'left': 72, 'width': 200, 'height': 100}}],
    }


def second_page_record():
    fragments = paragraph_lines(
        ["support of local divers who surveyed the old foundations in winter", LINE, LINE + "."], top=60)
    fragments += paragraph_lines([LINE, LINE, LINE + "."], top=140)
    fragments += paragraph_lines([LINE, LINE, LINE + "."], top=220)
    return {'width': 612, 'height': 792, 'fragments': fragments}


class TestLayoutPipeline(unittest.TestCase):

    def test_single_page_end_to_end(self):
        pipeline = LayoutPipeline(PipelineConfig.per_page_only())
        outputs, debug = pipeline.run_from_records([first_page_record()])

        self.assertEqual(len(outputs), 1)
        page = outputs[0]
        self.assertIsInstance(page, Page)
        self.assertEqual(page.title, "Page 1")

        kinds = [el.semantic_type if el.kind == "text" else el.kind for el in page.ordered_elements]
        self.assertEqual(kinds, [SemanticType.H1, SemanticType.PARAGRAPH, SemanticType.PARAGRAPH,
                                 SemanticType.PARAGRAPH, "image"])

        first_paragraph = page.ordered_elements[1]
        self.assertTrue(first_paragraph.composed)
        self.assertEqual(len(first_paragraph.source_fragments), 3)
        self.assertEqual(first_paragraph.bbox.top, 110)
        self.assertEqual(first_paragraph.bbox.bottom, 110 + 28 + 12)
        self.assertEqual(page.ordered_elements[0].formatted_text, "<strong>Introduction</strong>")

        self.assertEqual(page.metadata["column_count"], 1)
        meta = page.to_dict()["metadata"]
        self.assertEqual(meta, {"columnCount": 1, "columnBoundaries": [], "isComposed": False})
        self.assertEqual(debug.fragments_total, 10)
        self.assertEqual(debug.composites_total, 4)
        self.assertEqual(debug.type_counts, {"h1": 1, "paragraph": 3})

    def test_continuing_pages_are_composed(self):
        outputs, debug = LayoutPipeline().run_from_records([first_page_record(), second_page_record()])

        self.assertEqual(len(outputs), 1)
        composed = outputs[0]
        self.assertIsInstance(composed, ComposedPage)
        self.assertEqual(composed.source_page_indexes, (0, 1))
        self.assertEqual(composed.height, 1584.0)
        self.assertEqual(composed.ordered_elements[5].bbox.top, 60 + 792)
        self.assertEqual(debug.composed_count, 1)
        self.assertEqual(debug.continuity_reasons, {"continue": 1})

        data = composed.to_dict()
        self.assertEqual(data["metadata"]["composedFromPageIndexes"], [0, 1])
        self.assertEqual(data["metadata"]["originalHeights"], [792.0, 792.0])
        self.assertEqual(data["metadata"]["columnCount"], 1)
        self.assertFalse([k for k in data["metadata"] if "_" in k])
        self.assertEqual(data["orderedElements"][0]["type"], "h1")

    def test_per_page_only_keeps_pages_separate(self):
        outputs, debug = LayoutPipeline(PipelineConfig.per_page_only()).run_from_records(
            [first_page_record(), second_page_record()])

        self.assertEqual([p.index for p in outputs], [0, 1])
        self.assertEqual(debug.composed_count, 0)
        self.assertEqual(debug.continuity_reasons, {})

    def test_two_column_page(self):
        fragments = paragraph_lines([LINE[:40]] * 3, top=100, left=50, width=200)
        fragments += paragraph_lines([LINE[:40]] * 3, top=60, left=300, width=200)
        outputs, _ = LayoutPipeline(PipelineConfig.per_page_only()).run_from_records(
            [{'width': 612, 'height': 792, 'fragments': fragments}])

        page = outputs[0]
        self.assertEqual(page.metadata["column_count"], 2)
        self.assertEqual(page.metadata["column_boundaries"], [275.0])
        self.assertEqual([c.bbox.left for c in page.text_composites], [50, 300])

    def test_failed_page_keeps_non_text(self):
        pipeline = LayoutPipeline()
        original = pipeline.merger.merge

        def flaky(fragments, page_index=0, context=None):
            if page_index == 1:
                raise ValueError("bad geometry")
            return original(fragments, page_index, context)

        records = [second_page_record(), first_page_record()]
        with patch.object(pipeline.merger, 'merge', side_effect=flaky):
            with self.assertLogs('pagecompose.pipeline', level='ERROR'):
                outputs, debug = pipeline.run_from_records(records)

        self.assertEqual(debug.failed_pages, [1])
        failed = outputs[-1]
        self.assertIsInstance(failed, Page)
        self.assertEqual(failed.index, 1)
        self.assertEqual([el.id for el in failed.ordered_elements], ["fig1"])
        self.assertIn("bad geometry", failed.metadata["error"])
        self.assertIn("error", failed.to_dict()["metadata"])

    def test_cleaning_removes_running_furniture(self):
        fragments = [
            {'text': 'Running Header Text', 'boundingBox': {'top': 10, 'left': 72, 'width': 200, 'height': 10},
             'fontSize': 9},
            {'text': '12', 'boundingBox': {'top': 760, 'left': 300, 'width': 12, 'height': 10}, 'fontSize': 9},
        ]
        fragments += paragraph_lines([LINE] * 3, top=200)
        config = PipelineConfig(enable_cleaning=True, enable_continuity=False)

        outputs, debug = LayoutPipeline(config).run_from_records([{'width': 612, 'height': 792,
                                                                   'fragments': fragments}])

        self.assertEqual(debug.removed_by_cleaning, 2)
        self.assertEqual(len(outputs[0].text_composites), 1)

    def test_malformed_fragments_are_counted(self):
        fragments = paragraph_lines([LINE] * 2, top=200)
        fragments.append({'text': 'stray', 'boundingBox': None, 'fontSize': 'large'})

        _, debug = LayoutPipeline(PipelineConfig.per_page_only()).run_from_records(
            [{'width': 612, 'height': 792, 'fragments': fragments}])

        self.assertEqual(debug.malformed_fragments, 2)

    def test_runs_do_not_share_state(self):
        pipeline = LayoutPipeline()
        first, _ = pipeline.run_from_records([first_page_record()])
        second, _ = pipeline.run_from_records([first_page_record()])

        self.assertEqual([c.id for c in first[0].text_composites], [c.id for c in second[0].text_composites])
        self.assertEqual(first[0].text_composites[0].id, "p0_c1")

    def test_explicit_context_collects_diagnostics(self):
        context = ProcessingContext()
        LayoutPipeline().run_from_records([first_page_record()], context)
        self.assertEqual(context.composite_counters, {0: 4})

    def test_debug_summary(self):
        _, debug = LayoutPipeline().run_from_records([first_page_record(), second_page_record()])
        summary = debug.summary()
        self.assertIn("PAGE COMPOSITION DEBUG SUMMARY", summary)
        self.assertIn("continue: 1", summary)


class TestRunLayoutPipeline(unittest.TestCase):

    def test_reads_pages_with_pdfplumber(self):
        plumber_page = MagicMock()
        plumber_page.width = 612
        plumber_page.height = 792
        plumber_page.extract_words.return_value = [
            {'text': 'Hello', 'x0': 72, 'x1': 110, 'top': 100, 'bottom': 112, 'size': 12, 'fontname': 'Helvetica'},
            {'text': 'world', 'x0': 114, 'x1': 150, 'top': 100, 'bottom': 112, 'size': 12, 'fontname': 'Helvetica'},
        ]
        plumber_page.images = [{'x0': 72, 'x1': 272, 'top': 200, 'bottom': 300, 'name': 'Im0'}]
        plumber_page.hyperlinks = []

        pdf = MagicMock()
        pdf.pages = [plumber_page]
        pdf.__enter__.return_value = pdf

        with patch('pdfplumber.open', return_value=pdf) as opener:
            outputs, debug = run_layout_pipeline("paper.pdf")

        opener.assert_called_once_with("paper.pdf")
        self.assertEqual(debug.pages_in, 1)
        elements = outputs[0].ordered_elements
        self.assertEqual(elements[0].text, "Hello world")
        self.assertIsInstance(elements[1], ImageElement)


if __name__ == "__main__":
    unittest.main()
