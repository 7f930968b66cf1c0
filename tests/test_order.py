"""
Tests for column detection, reading order and non-text interleaving
"""

import unittest
import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pagecompose.order import (
    ColumnOrderer, ColumnConfig, detect_column_boundaries, order_composites, interleave_elements,
)
from pagecompose.types import BoundingBox, ImageElement, LinkElement
from tests.builders import comp


class TestColumnOrderer(unittest.TestCase):

    def setUp(self):
        self.orderer = ColumnOrderer()

    def test_two_columns_separated_by_40_units(self):
        # Right column listed first and interleaved by top to make sure
        # the output does not just echo the input order.
        right = [comp("R%d" % i, left=290, top=100 + i * 50, width=200, size=9) for i in range(3)]
        left = [comp("L%d" % i, left=50, top=110 + i * 50, width=200, size=9) for i in range(3)]
        composites = [right[0], left[0], right[1], left[1], right[2], left[2]]

        layout = self.orderer.analyze(composites)

        self.assertEqual(layout.column_count, 2)
        self.assertEqual(layout.boundaries, [270.0])
        self.assertEqual([c.text for c in layout.ordered], ["L0", "L1", "L2", "R0", "R1", "R2"])

    def test_single_column_sorts_by_top_then_left(self):
        composites = [
            comp("third", left=50, top=300),
            comp("first-b", left=60, top=100, width=50),
            comp("first-a", left=50, top=100, width=5),
            comp("second", left=50, top=200),
        ]

        layout = self.orderer.analyze(composites)

        self.assertFalse(layout.is_multi_column)
        self.assertEqual([c.text for c in layout.ordered], ["first-a", "first-b", "second", "third"])

    def test_three_columns(self):
        composites = []
        for col, left in enumerate([40, 230, 420]):
            for row in range(2):
                composites.append(comp("c%dr%d" % (col, row), left=left, top=500 - row * 100, width=150))

        boundaries = detect_column_boundaries(composites)
        ordered = order_composites(composites)

        self.assertEqual(boundaries, [210.0, 400.0])
        self.assertEqual([c.text for c in ordered], ["c0r1", "c0r0", "c1r1", "c1r0", "c2r1", "c2r0"])

    def test_gap_below_threshold_is_not_a_boundary(self):
        composites = [comp("a", left=50, top=100, width=200), comp("b", left=264, top=100, width=200)]
        self.assertEqual(self.orderer.detect_boundaries(composites), [])

        wide = ColumnOrderer(ColumnConfig(min_gap=10))
        self.assertEqual(wide.detect_boundaries(composites), [257.0])

    def test_narrow_block_inside_wide_column_is_not_a_gap(self):
        composites = [
            comp("wide", left=50, top=100, width=200),
            comp("indent", left=55, top=200, width=10),
            comp("right", left=290, top=100, width=200),
        ]
        self.assertEqual(detect_column_boundaries(composites), [270.0])

    def test_center_on_boundary_goes_left(self):
        on_line = comp("on", left=100, top=50, width=30)   # center 115
        right_of = comp("right", left=101, top=10, width=30)  # center 116

        columns = self.orderer.assign_columns([on_line, right_of], [115.0])

        self.assertEqual([c.text for c in columns[0]], ["on"])
        self.assertEqual([c.text for c in columns[1]], ["right"])

    def test_columns_are_contiguous_and_top_to_bottom(self):
        composites = []
        for col in range(4):
            for row in (3, 0, 2, 1):
                composites.append(comp("%d-%d" % (col, row), left=20 + col * 150, top=100 + row * 80, width=120))

        layout = self.orderer.analyze(composites)
        self.assertEqual(layout.column_count, 4)

        seen_columns = []
        for c in layout.ordered:
            col = int(c.text.split("-")[0])
            if not seen_columns or seen_columns[-1] != col:
                self.assertNotIn(col, seen_columns)
                seen_columns.append(col)
        self.assertEqual(seen_columns, [0, 1, 2, 3])

        for column in layout.columns:
            tops = [c.bbox.top for c in column]
            self.assertEqual(tops, sorted(tops))

    def test_empty(self):
        self.assertEqual(self.orderer.order([]), [])


class TestInterleave(unittest.TestCase):

    def test_non_text_placed_by_top(self):
        first = comp("first", left=50, top=100)
        second = comp("second", left=50, top=300)
        tie = ImageElement(id="img-tie", bbox=BoundingBox(top=310, left=300, width=100, height=100))
        early = LinkElement(id="link-early", bbox=BoundingBox(top=20, left=50, width=40, height=10))
        late = ImageElement(id="img-late", bbox=BoundingBox(top=700, left=50, width=100, height=50))

        result = interleave_elements([first, second], [late, tie, early])

        ids = [el.text if el.kind == "text" else el.id for el in result]
        self.assertEqual(ids, ["link-early", "first", "img-tie", "second", "img-late"])

    def test_tolerance_edge(self):
        c = comp("text", left=50, top=100)
        at_edge = ImageElement(id="edge", bbox=BoundingBox(top=110, left=50, width=60, height=60))
        past_edge = ImageElement(id="past", bbox=BoundingBox(top=110.5, left=50, width=60, height=60))

        self.assertIs(interleave_elements([c], [at_edge])[0], at_edge)
        self.assertIs(interleave_elements([c], [past_edge])[0], c)

    def test_composite_order_preserved(self):
        # Column order puts a lower composite first; interleave must not re-sort text
        right_top = comp("right column top", left=300, top=50)
        left_bottom = comp("left column bottom", left=50, top=400)
        result = interleave_elements([left_bottom, right_top], [])
        self.assertEqual([c.text for c in result], ["left column bottom", "right column top"])


if __name__ == "__main__":
    unittest.main()
