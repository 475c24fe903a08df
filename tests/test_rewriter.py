"""Tests for whole-formula rewriting and placeholders."""

import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sheet_remap.config import DEFAULTS
from sheet_remap.headers import HeaderMap
from sheet_remap.models import MISSING_HEADERS, UNRESOLVABLE, RowLayout
from sheet_remap.remapper import RemapContext
from sheet_remap.rewriter import (
    collect_missing_headers,
    missing_placeholder,
    placeholder_for,
    rewrite_formula,
)
from sheet_remap.tokenizer import tokenize

SOURCE = HeaderMap.from_list(["Name", "Amount", "Tax"], table="Orders")


def _ctx(dest_headers, source_row=2, dest_row=5, dest_layout=None, source_layout=None):
    return RemapContext(
        source_headers=SOURCE,
        dest_headers=dest_headers,
        source_layout=source_layout or RowLayout(header_row=1),
        dest_layout=dest_layout or RowLayout.for_rows(1, 10),
        source_row=source_row,
        dest_row=dest_row,
    )


class TestRewriteFormula(unittest.TestCase):
    def test_column_moves_right(self):
        outcome = rewrite_formula("=B2*2", _ctx(["Name", "Tax", "Amount"]))
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.text, "=C5*2")

    def test_missing_header_reported(self):
        outcome = rewrite_formula("=SUM(B2:B10)", _ctx(["Name", "Tax"]))
        self.assertEqual(outcome.status, MISSING_HEADERS)
        self.assertEqual(outcome.missing_headers, ("Amount",))
        self.assertIsNone(outcome.text)

    def test_sheet_qualified_reference_untouched(self):
        outcome = rewrite_formula("='汇总表'!A1+B2", _ctx(["Name", "Tax", "Amount"]))
        self.assertEqual(outcome.text, "='汇总表'!A1+C5")

    def test_several_references_spliced(self):
        outcome = rewrite_formula("=B2+C2*$A$1", _ctx(["Tax", "Amount", "Name"]))
        self.assertEqual(outcome.text, "=B5+A5*$C$1")

    def test_cell_like_sheet_name_untouched(self):
        ctx = _ctx(["Name", "Tax", "Amount"])
        self.assertEqual(rewrite_formula("='Q1'!B5+B2", ctx).text, "='Q1'!B5+C5")
        self.assertEqual(rewrite_formula("='Sales Q1'!B5+B2", ctx).text,
                         "='Sales Q1'!B5+C5")

    def test_cell_like_sheet_name_with_wide_source(self):
        source = HeaderMap.from_list([f"H{i}" for i in range(1, 21)], table="Wide")
        ctx = RemapContext(
            source_headers=source,
            dest_headers=[f"H{i}" for i in range(20, 0, -1)],
            source_layout=RowLayout(header_row=1),
            dest_layout=RowLayout.for_rows(1, 10),
            source_row=2,
            dest_row=5,
        )
        self.assertEqual(rewrite_formula("='Q1'!B5+B2", ctx).text, "='Q1'!B5+S5")

    def test_string_literal_untouched(self):
        outcome = rewrite_formula('=IF(B2>0,"B2","")', _ctx(["Name", "Tax", "Amount"]))
        self.assertEqual(outcome.text, '=IF(C5>0,"B2","")')

    def test_function_names_untouched(self):
        outcome = rewrite_formula("=LOG10(B2)", _ctx(["Name", "Tax", "Amount"]))
        self.assertEqual(outcome.text, "=LOG10(C5)")

    def test_no_references(self):
        outcome = rewrite_formula("=1+2", _ctx(["Name"]))
        self.assertEqual(outcome.text, "=1+2")

    def test_every_missing_header_reported(self):
        outcome = rewrite_formula("=B2+C2+B3", _ctx(["Name"]))
        self.assertEqual(outcome.status, MISSING_HEADERS)
        self.assertEqual(outcome.missing_headers, ("Amount", "Tax"))

    def test_unresolvable_still_names_missing_headers(self):
        outcome = rewrite_formula("=B2+F2", _ctx(["Name"]))
        self.assertEqual(outcome.status, UNRESOLVABLE)
        self.assertEqual(outcome.missing_headers, ("Amount",))

    def test_row_out_of_bounds(self):
        ctx = _ctx(["Name", "Amount", "Tax"], source_row=2, dest_row=4,
                   dest_layout=RowLayout.for_rows(1, 3))
        outcome = rewrite_formula("=A2+A3", ctx)
        self.assertEqual(outcome.status, UNRESOLVABLE)
        self.assertEqual(outcome.missing_headers, ())


class TestInvariants(unittest.TestCase):
    FORMULAS = [
        "=B2*2",
        "=SUM(A2:C3)+$A$1*B2",
        "=SUM(B:C)",
        "=IF(A2=\"x\",B$2,C3)",
        "=Other!Z9+A2",
    ]

    def test_identity_layout_is_noop(self):
        ctx = _ctx(["Name", "Amount", "Tax"], source_row=3, dest_row=3,
                   dest_layout=RowLayout(header_row=1))
        for formula in self.FORMULAS:
            self.assertEqual(rewrite_formula(formula, ctx).text, formula)

    def test_relative_offset_preserved(self):
        for source_row, dest_row in [(2, 2), (3, 7), (6, 4)]:
            ctx = _ctx(["Name", "Amount", "Tax"], source_row=source_row,
                       dest_row=dest_row, dest_layout=RowLayout(header_row=1))
            formula = f"=A{source_row + 1}-A{source_row}"
            outcome = rewrite_formula(formula, ctx)
            self.assertEqual(outcome.text, f"=A{dest_row + 1}-A{dest_row}")

    def test_rewrite_is_pure(self):
        ctx = _ctx(["Name", "Tax", "Amount"])
        self.assertEqual(rewrite_formula("=B2", ctx), rewrite_formula("=B2", ctx))


class TestCollectMissingHeaders(unittest.TestCase):
    def test_left_to_right_deduplicated(self):
        tokens = tokenize("=C2+B2+C3")
        self.assertEqual(collect_missing_headers(tokens, _ctx(["Name"])), ["Tax", "Amount"])


class TestPlaceholders(unittest.TestCase):
    def test_default_text(self):
        self.assertEqual(missing_placeholder(["Amount"]), "缺少Amount")
        self.assertEqual(missing_placeholder(["Amount", "Tax"]), "缺少Amount、Tax")
        self.assertEqual(missing_placeholder([]), "F-Null")

    def test_configured_text(self):
        config = dict(DEFAULTS, missing_header_prefix="Missing: ",
                      missing_header_separator=", ", unresolved_placeholder="#REF")
        self.assertEqual(missing_placeholder(["A", "B"], config), "Missing: A, B")
        self.assertEqual(missing_placeholder([], config), "#REF")

    def test_placeholder_for_outcome(self):
        outcome = rewrite_formula("=B2+C2", _ctx(["Name"]))
        self.assertEqual(placeholder_for(outcome), "缺少Amount、Tax")


if __name__ == "__main__":
    unittest.main()
