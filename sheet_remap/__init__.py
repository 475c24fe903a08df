"""Spreadsheet formula reference remapping.

Rebuilds worksheet tables under a new layout (reordered columns, sorted or
grouped rows, per-category sheets, merged tables) while keeping their
formulas pointing at the same data.  References travel by **header name**:

  * :mod:`tokenizer` finds A1-style references in a formula.
  * :mod:`remapper` moves one reference from a source layout to a
    destination layout.
  * :mod:`rewriter` rewrites a whole formula, or reports which headers the
    destination is missing.
  * :mod:`aggregation` builds the ``SUM`` / ``AVERAGE`` footer formulas.

The builders in :mod:`reshuffle`, :mod:`category_split` and :mod:`merge`
put those pieces together over openpyxl worksheets.
"""

from .aggregation import FooterFunction
from .category_split import SplitPlan, split_by_category
from .headers import HeaderMap, build_header_map
from .merge import merge_sheets, merge_workbooks
from .models import RemapOutcome, RowLayout
from .remapper import RemapContext
from .reshuffle import CategoryGrouping, SortRule, reshuffle_sheet
from .rewriter import rewrite_formula

__all__ = [
    "FooterFunction",
    "SplitPlan",
    "split_by_category",
    "HeaderMap",
    "build_header_map",
    "merge_sheets",
    "merge_workbooks",
    "RemapOutcome",
    "RowLayout",
    "RemapContext",
    "CategoryGrouping",
    "SortRule",
    "reshuffle_sheet",
    "rewrite_formula",
]
