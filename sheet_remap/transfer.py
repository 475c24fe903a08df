"""
Row and cell transfer between a source table and a destination sheet.

Shared by the reshuffle, category-split and merge builders: reads a source
table (header map + data rows), copies cells column-by-header into a
destination layout and rewrites every formula on the way.
"""

import logging
from dataclasses import dataclass, field

from openpyxl.styles import Font

from .cells import Formula, cell_display_text, format_display_value, read_cell_content, write_cell_content
from .headers import build_header_map
from .models import RowLayout
from .remapper import RemapContext
from .rewriter import placeholder_for, rewrite_formula

logger = logging.getLogger(__name__)

HEADER_FONT = Font(bold=True)
TOTAL_FONT = Font(bold=True)


@dataclass
class SourceTable:
    """A worksheet region: header row plus the non-empty rows below it."""
    ws: object
    headers: object  # HeaderMap
    layout: RowLayout
    rows: list = field(default_factory=list)

    @property
    def name(self):
        return self.headers.table

    def cell(self, row, header):
        """Source cell under *header* in *row*, or None if the header is absent."""
        col = self.headers.lookup_by_name(header)
        if col is None:
            return None
        return self.ws.cell(row=row, column=col)

    def value(self, row, header):
        cell = self.cell(row, header)
        return cell.value if cell is not None else None

    def display(self, row, header):
        return cell_display_text(self.cell(row, header))


@dataclass
class BuildReport:
    """What a builder wrote, for logging and user-facing warnings."""
    sheets: list = field(default_factory=list)
    rows_written: int = 0
    formulas_rewritten: int = 0
    formulas_failed: int = 0
    missing_headers: list = field(default_factory=list)

    def record(self, outcome):
        if outcome.ok:
            self.formulas_rewritten += 1
            return
        self.formulas_failed += 1
        for name in outcome.missing_headers:
            if name not in self.missing_headers:
                self.missing_headers.append(name)


def _row_is_empty(ws, row, max_col):
    for col in range(1, max_col + 1):
        value = ws.cell(row=row, column=col).value
        if value is not None and str(value).strip() != "":
            return False
    return True


def read_source_table(ws, header_row=1, table=None, deduplicate=False):
    """Read *ws* as a table whose headers sit on *header_row*.

    Blank rows are skipped.  With *deduplicate*, rows whose every cell equals
    an earlier row's are dropped (the first physical row is kept).
    """
    headers = build_header_map(ws, header_row=header_row, table=table)
    max_col = ws.max_column or 0
    rows = []
    seen = set()
    for row in range(header_row + 1, (ws.max_row or 0) + 1):
        if _row_is_empty(ws, row, max_col):
            continue
        if deduplicate:
            key = tuple(format_display_value(ws.cell(row=row, column=c).value)
                        for c in range(1, max_col + 1))
            if key in seen:
                logger.debug("Dropping duplicate row %d of %s", row, ws.title)
                continue
            seen.add(key)
        rows.append(row)
    logger.info("Source table '%s': %d headers, %d data rows",
                headers.table, len(headers), len(rows))
    return SourceTable(ws=ws, headers=headers, layout=RowLayout(header_row=header_row), rows=rows)


def write_header_row(ws, row, headers):
    for col, header in enumerate(headers, start=1):
        cell = ws.cell(row=row, column=col, value=header)
        cell.font = HEADER_FONT


def transfer_cell(src_cell, dest_cell, ctx, report, config=None):
    """Copy one cell, rewriting a formula for the destination.

    A formula that cannot be moved is replaced by placeholder text naming the
    missing headers.
    """
    content = read_cell_content(src_cell)
    if not isinstance(content, Formula):
        write_cell_content(dest_cell, content)
        return None
    outcome = rewrite_formula(content.text, ctx)
    report.record(outcome)
    if outcome.ok:
        dest_cell.value = outcome.text
    else:
        dest_cell.value = placeholder_for(outcome, config)
        logger.debug("%s!%s: kept placeholder for %r (%s)", src_cell.parent.title,
                     src_cell.coordinate, content.text, outcome.reason)
    return outcome


def copy_row(table, source_row, dest_ws, dest_row, dest_headers, dest_layout,
             report, config=None):
    """Write *source_row* of *table* into *dest_row*, column by header name.

    Destination headers absent from the source stay blank.
    """
    base_ctx = RemapContext(
        source_headers=table.headers,
        dest_headers=dest_headers,
        source_layout=table.layout,
        dest_layout=dest_layout,
        source_row=source_row,
        dest_row=dest_row,
    )
    for col, header in enumerate(dest_headers, start=1):
        src_cell = table.cell(source_row, header)
        if src_cell is None:
            continue
        transfer_cell(src_cell, dest_ws.cell(row=dest_row, column=col), base_ctx,
                      report, config)
    report.rows_written += 1
