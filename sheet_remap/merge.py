"""
Two-table merge.

Stacks a base table and a data-source table under one destination header
order.  Each row keeps the header map of the table it was read from, so a
formula is always rewritten against its own origin and never guessed.
"""

import logging

from openpyxl import Workbook

from .aggregation import FooterFunction, as_formula, column_aggregate, footer_label
from .config import DEFAULTS
from .models import RowLayout
from .transfer import TOTAL_FONT, BuildReport, copy_row, read_source_table, write_header_row
from .workbook_io import get_sheet, load_source_workbook

logger = logging.getLogger(__name__)


def merged_header_order(*tables):
    """Ordered union of the header names of *tables*."""
    order = []
    for table in tables:
        for name in table.headers.names():
            if name not in order:
                order.append(name)
    return order


def merge_sheets(base_ws, source_ws, dest_ws, header_order=None, header_row=None,
                 source_header_row=None, footer_headers=None, footer_function=None,
                 config=None):
    """Write the rows of *base_ws* then *source_ws* into *dest_ws*.

    Returns a ``BuildReport``.
    """
    config = config or DEFAULTS
    header_row = header_row or config["header_row"]
    source_header_row = source_header_row or header_row
    function = FooterFunction.parse(footer_function or config["footer_function"])

    base = read_source_table(base_ws, header_row=header_row)
    source = read_source_table(source_ws, header_row=source_header_row)
    if base.name == source.name:
        # same title in two workbooks: keep the maps distinguishable
        base.headers.table = f"{base.name} (base)"

    dest_headers = list(header_order) if header_order else merged_header_order(base, source)
    if not dest_headers:
        raise ValueError("Neither table has headers to merge")

    report = BuildReport(sheets=[dest_ws.title])
    write_header_row(dest_ws, 1, dest_headers)
    total = len(base.rows) + len(source.rows)
    layout = RowLayout.for_rows(1, total)

    dest_row = layout.data_start_row
    for table in (base, source):
        for row in table.rows:
            copy_row(table, row, dest_ws, dest_row, dest_headers, layout, report, config)
            dest_row += 1
        logger.info("Merged %d rows from '%s'", len(table.rows), table.name)

    footer_cols = [h for h in (footer_headers or []) if h in dest_headers]
    if footer_cols and total:
        used = set()
        for header in footer_cols:
            col = dest_headers.index(header) + 1
            cell = dest_ws.cell(row=layout.footer_row, column=col,
                                value=as_formula(column_aggregate(
                                    function, col, layout.data_start_row, layout.data_end_row)))
            cell.font = TOTAL_FONT
            used.add(col)
        if 1 not in used:
            dest_ws.cell(row=layout.footer_row, column=1,
                         value=footer_label(function)).font = TOTAL_FONT

    if report.missing_headers:
        logger.warning("Formulas need headers missing from the merged sheet: %s",
                       ", ".join(report.missing_headers))
    return report


def merge_workbooks(base_path, source_path, base_sheet=None, source_sheet=None,
                    header_order=None, footer_headers=None, config=None):
    """Load two workbooks and merge one sheet of each into a new workbook.

    Returns ``(workbook, BuildReport)``.
    """
    config = config or DEFAULTS
    base_ws = get_sheet(load_source_workbook(base_path), base_sheet)
    source_ws = get_sheet(load_source_workbook(source_path), source_sheet)

    wb = Workbook()
    dest_ws = wb.active
    dest_ws.title = base_ws.title
    report = merge_sheets(base_ws, source_ws, dest_ws, header_order=header_order,
                          footer_headers=footer_headers, config=config)
    return wb, report
