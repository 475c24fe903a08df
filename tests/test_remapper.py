"""Tests for single-reference remapping."""

import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sheet_remap.headers import HeaderMap
from sheet_remap.models import MISSING_HEADERS, UNRESOLVABLE, RowLayout
from sheet_remap.remapper import (
    AMBIGUOUS_PROVENANCE,
    ROW_OUT_OF_BOUNDS,
    UNKNOWN_COLUMN,
    RemapContext,
    remap_row,
    remap_token,
    resolve_header,
)
from sheet_remap.tokenizer import tokenize

SOURCE = HeaderMap.from_list(["Name", "Amount", "Tax"], table="Orders")


def _ctx(dest_headers, source_row=2, dest_row=5, dest_layout=None, alternates=()):
    return RemapContext(
        source_headers=SOURCE,
        dest_headers=dest_headers,
        source_layout=RowLayout(header_row=1),
        dest_layout=dest_layout or RowLayout.for_rows(1, 10),
        source_row=source_row,
        dest_row=dest_row,
        alternate_headers=alternates,
    )


def _remap(ref, ctx):
    (token,) = tokenize("=" + ref)
    return remap_token(token, ctx)


class TestColumns(unittest.TestCase):
    def test_moves_by_header_name(self):
        ctx = _ctx(["Tax", "Name", "Amount"])
        self.assertEqual(_remap("B2", ctx).text, "C5")
        self.assertEqual(_remap("A2", ctx).text, "B5")

    def test_keeps_dollar_markers(self):
        ctx = _ctx(["Tax", "Name", "Amount"])
        self.assertEqual(_remap("$B2", ctx).text, "$C5")

    def test_missing_header(self):
        outcome = _remap("C2", _ctx(["Name", "Amount"]))
        self.assertEqual(outcome.status, MISSING_HEADERS)
        self.assertEqual(outcome.missing_headers, ("Tax",))

    def test_column_without_header(self):
        outcome = _remap("F2", _ctx(["Name", "Amount", "Tax"]))
        self.assertEqual(outcome.status, UNRESOLVABLE)
        self.assertEqual(outcome.reason, UNKNOWN_COLUMN)

    def test_column_range(self):
        ctx = _ctx(["Amount", "Tax", "Name"])
        self.assertEqual(_remap("B:C", ctx).text, "A:B")


class TestRows(unittest.TestCase):
    def test_relative_row_keeps_distance(self):
        ctx = _ctx(["Name", "Amount", "Tax"], source_row=4, dest_row=8)
        self.assertEqual(_remap("A3", ctx).text, "A7")
        self.assertEqual(_remap("A4", ctx).text, "A8")

    def test_absolute_row_keeps_offset_from_header(self):
        ctx = _ctx(["Name", "Amount", "Tax"], source_row=4, dest_row=8,
                   dest_layout=RowLayout.for_rows(3, 10))
        self.assertEqual(_remap("A$2", ctx).text, "A$4")

    def test_header_row_maps_to_destination_header(self):
        ctx = _ctx(["Name", "Amount", "Tax"], source_row=4, dest_row=9,
                   dest_layout=RowLayout.for_rows(3, 10))
        self.assertEqual(_remap("B1", ctx).text, "B3")
        self.assertEqual(_remap("$B$1", ctx).text, "$B$3")

    def test_row_into_footer_rejected(self):
        ctx = _ctx(["Name", "Amount", "Tax"], source_row=2, dest_row=4,
                   dest_layout=RowLayout.for_rows(1, 3))
        outcome = _remap("B3", ctx)
        self.assertEqual(outcome.status, UNRESOLVABLE)
        self.assertEqual(outcome.reason, ROW_OUT_OF_BOUNDS)

    def test_absolute_row_into_footer_rejected(self):
        ctx = _ctx(["Name", "Amount", "Tax"], source_row=2, dest_row=2,
                   dest_layout=RowLayout.for_rows(1, 3))
        outcome = _remap("$B$5", ctx)
        self.assertEqual(outcome.status, UNRESOLVABLE)
        self.assertEqual(outcome.reason, ROW_OUT_OF_BOUNDS)
        self.assertEqual(_remap("$B$4", ctx).text, "$B$4")

    def test_remap_absolute_row_bounds(self):
        ctx = _ctx(["Name"], source_row=2, dest_row=2,
                   dest_layout=RowLayout.for_rows(1, 3))
        self.assertEqual(remap_row(4, True, ctx), 4)
        self.assertIsNone(remap_row(5, True, ctx))
        self.assertIsNone(remap_row(6, True, ctx))

    def test_row_between_header_and_data_rejected(self):
        layout = RowLayout(header_row=1, data_start_row=4, footer_row=6)
        ctx = _ctx(["Name", "Amount", "Tax"], source_row=3, dest_row=4, dest_layout=layout)
        self.assertEqual(_remap("A2", ctx).status, UNRESOLVABLE)

    def test_row_range(self):
        ctx = _ctx(["Name", "Amount", "Tax"], source_row=2, dest_row=5)
        self.assertEqual(_remap("2:3", ctx).text, "5:6")

    def test_remap_row_directly(self):
        ctx = _ctx(["Name"], source_row=2, dest_row=5)
        self.assertEqual(remap_row(1, False, ctx), 1)
        self.assertEqual(remap_row(3, False, ctx), 6)
        self.assertIsNone(remap_row(20, False, ctx))


class TestRanges(unittest.TestCase):
    def test_endpoints_move_independently(self):
        ctx = _ctx(["Tax", "Amount", "Name"])
        # endpoint order is kept even when columns swap sides
        self.assertEqual(_remap("A2:C3", ctx).text, "C5:A6")

    def test_missing_names_from_both_endpoints(self):
        outcome = _remap("B2:C2", _ctx(["Name"]))
        self.assertEqual(outcome.status, MISSING_HEADERS)
        self.assertEqual(outcome.missing_headers, ("Amount", "Tax"))

    def test_unresolvable_endpoint_fails_range(self):
        outcome = _remap("B2:F2", _ctx(["Name", "Amount", "Tax"]))
        self.assertEqual(outcome.status, UNRESOLVABLE)


class TestProvenance(unittest.TestCase):
    def test_agreeing_candidates(self):
        other = HeaderMap.from_list(["Name", "Amount"], table="Archive")
        ctx = _ctx(["Amount", "Name"], alternates=[other])
        self.assertEqual(resolve_header(2, ctx), ("Amount", None))
        self.assertEqual(_remap("B2", ctx).text, "A5")

    def test_conflicting_candidates_fail_closed(self):
        other = HeaderMap.from_list(["Name", "Qty"], table="Archive")
        ctx = _ctx(["Amount", "Qty", "Name"], alternates=[other])
        self.assertEqual(resolve_header(2, ctx), (None, AMBIGUOUS_PROVENANCE))
        outcome = _remap("B2", ctx)
        self.assertEqual(outcome.status, UNRESOLVABLE)
        self.assertEqual(outcome.reason, AMBIGUOUS_PROVENANCE)


class TestContext(unittest.TestCase):
    def test_at_keeps_everything_but_rows(self):
        ctx = _ctx(["Name"])
        moved = ctx.at(7, 9)
        self.assertEqual((moved.source_row, moved.dest_row), (7, 9))
        self.assertEqual(moved.dest_headers, ("Name",))
        self.assertIs(moved.source_headers, ctx.source_headers)

    def test_dest_position(self):
        ctx = _ctx(["Tax", "Name"])
        self.assertEqual(ctx.dest_position("Name"), 2)
        self.assertIsNone(ctx.dest_position("Amount"))


if __name__ == "__main__":
    unittest.main()
