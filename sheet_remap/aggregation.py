"""
Aggregation (footer / roll-up) formula builders.

Produces the ``SUM`` / ``AVERAGE`` formulas written into total rows:

  * local column span          SUM(C4:C13)
  * span on another sheet      SUM('Cat1'!C4:C13)
  * several cells or spans     SUM('Cat1'!B20,'Cat2'!B20,'Cat3'!B20)

Sheet names are always single-quoted; an embedded quote is doubled as Excel
requires.  Returned text has no leading ``=``; ``as_formula`` adds it.
"""

from enum import Enum

from .column_codec import index_to_col_letter


class FooterFunction(str, Enum):
    SUM = "SUM"
    AVERAGE = "AVERAGE"

    @classmethod
    def parse(cls, value):
        """Accept ``SUM``/``AVERAGE`` in any case, or the labels 合计/平均值."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        alias = _ALIASES.get(text)
        if alias is not None:
            return alias
        try:
            return cls(text.upper())
        except ValueError:
            raise ValueError(f"Unknown footer function: {value!r}") from None


_ALIASES = {
    "合计": FooterFunction.SUM,
    "求和": FooterFunction.SUM,
    "平均值": FooterFunction.AVERAGE,
    "平均": FooterFunction.AVERAGE,
}


FOOTER_LABELS = {
    FooterFunction.SUM: "合计",
    FooterFunction.AVERAGE: "平均值",
}


MIXED_FOOTER_LABEL = "汇总"


def footer_label(function):
    """Caption written in a total row's first free cell."""
    return FOOTER_LABELS[FooterFunction.parse(function)]


def footer_label_for(functions):
    """Caption for a total row whose cells use *functions*.

    A row mixing ``SUM`` and ``AVERAGE`` cells gets a neutral caption.
    """
    kinds = {FooterFunction.parse(f) for f in functions}
    if len(kinds) == 1:
        return FOOTER_LABELS[kinds.pop()]
    return MIXED_FOOTER_LABEL


def _col(col):
    return index_to_col_letter(col) if isinstance(col, int) else col


def quote_sheet_name(sheet):
    return "'" + sheet.replace("'", "''") + "'"


def cell_reference(col, row, sheet=None, absolute=False):
    """``C4``, ``$C$4`` or ``'Sheet'!C4``; *col* may be letters or an index."""
    mark = "$" if absolute else ""
    ref = f"{mark}{_col(col)}{mark}{row}"
    if sheet is not None:
        return f"{quote_sheet_name(sheet)}!{ref}"
    return ref


def range_reference(col, start_row, end_row, sheet=None):
    """``C4:C13`` or ``'Sheet'!C4:C13`` for a single-column row span."""
    letters = _col(col)
    ref = f"{letters}{start_row}:{letters}{end_row}"
    if sheet is not None:
        return f"{quote_sheet_name(sheet)}!{ref}"
    return ref


def aggregate_formula(function, references):
    """``FUNC(ref1,ref2,...)`` over already-rendered references."""
    func = FooterFunction.parse(function)
    refs = list(references)
    if not refs:
        raise ValueError("aggregate_formula needs at least one reference")
    return f"{func.value}({','.join(refs)})"


def column_aggregate(function, col, start_row, end_row, sheet=None):
    """Aggregate one column over the contiguous rows ``start_row..end_row``."""
    return aggregate_formula(function, [range_reference(col, start_row, end_row, sheet)])


def sum_formula(col, start_row, end_row):
    return column_aggregate(FooterFunction.SUM, col, start_row, end_row)


def average_formula(col, start_row, end_row):
    return column_aggregate(FooterFunction.AVERAGE, col, start_row, end_row)


def cross_sheet_aggregate(function, sheet, col, start_row, end_row):
    """Aggregate a column span that lives on another sheet."""
    return column_aggregate(function, col, start_row, end_row, sheet=sheet)


def multi_cell_aggregate(function, cells):
    """Combine several single cells, e.g. per-category subtotal rows.

    *cells* is an iterable of ``(sheet, col, row)``; ``sheet`` may be None for
    cells on the formula's own sheet.
    """
    return aggregate_formula(function, [cell_reference(c, r, sheet=s) for s, c, r in cells])


def multi_range_aggregate(function, spans):
    """Combine several column spans, each ``(sheet, col, start_row, end_row)``."""
    return aggregate_formula(
        function, [range_reference(c, a, b, sheet=s) for s, c, a, b in spans]
    )


def as_formula(text):
    """Prefix ``=`` so openpyxl stores *text* as a formula."""
    return text if text.startswith("=") else "=" + text
