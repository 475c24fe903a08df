"""
Single-sheet reshuffle.

Rewrites one table under a new column order: rows optionally sorted by
several headers, optionally grouped by a category header with a subtotal row
per group, and optionally closed by a total row.  Every formula is moved
through the remapping engine; formulas that cannot be moved become
placeholder text.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field

from openpyxl.styles import Font

from .aggregation import (
    FooterFunction,
    as_formula,
    column_aggregate,
    footer_label,
    multi_cell_aggregate,
    multi_range_aggregate,
)
from .cells import sort_key
from .config import DEFAULTS
from .models import RowLayout
from .transfer import TOTAL_FONT, BuildReport, copy_row, read_source_table, write_header_row

logger = logging.getLogger(__name__)

TITLE_FONT = Font(bold=True, size=12)


@dataclass(frozen=True)
class SortRule:
    header: str
    descending: bool = False

    @classmethod
    def parse(cls, text):
        """``"Amount"``, ``"Amount:asc"`` or ``"Amount:desc"``."""
        if isinstance(text, cls):
            return text
        name, _, direction = str(text).rpartition(":")
        if not name or direction.lower() not in ("asc", "desc"):
            return cls(header=str(text).strip())
        return cls(header=name.strip(), descending=direction.lower() == "desc")


@dataclass
class CategoryGrouping:
    """Group rows by ``header``; subtotal ``summary_headers`` per group."""
    header: str
    summary_headers: list = field(default_factory=list)


def sort_rows(table, rows, sort_rules):
    """Stable multi-key sort of source row numbers; blank keys sort last."""
    ordered = list(rows)
    for rule in reversed(sort_rules):
        if rule.header not in table.headers:
            logger.warning("Sort header '%s' not in source; ignored", rule.header)
            continue
        ordered.sort(key=lambda r: sort_key(table.value(r, rule.header)),
                     reverse=rule.descending)
        ordered.sort(key=lambda r: sort_key(table.value(r, rule.header))[0] == 3)
    return ordered


def group_rows(table, rows, header, blank_name):
    """Category value -> rows, in order of first appearance."""
    groups = OrderedDict()
    for row in rows:
        key = table.display(row, header) or blank_name
        groups.setdefault(key, []).append(row)
    return groups


def _footer_columns(dest_headers, footer_headers):
    cols = []
    for header in footer_headers:
        if header not in dest_headers:
            logger.warning("Footer header '%s' not in output columns; skipped", header)
            continue
        cols.append((header, dest_headers.index(header) + 1))
    return cols


def _write_label(ws, row, used_cols, text):
    """Put *text* in the first column of *row* not holding a formula."""
    col = 1
    while col in used_cols:
        col += 1
    cell = ws.cell(row=row, column=col, value=text)
    cell.font = TOTAL_FONT


def reshuffle_sheet(src_ws, dest_ws, header_order=None, header_row=None,
                    sort_rules=None, footer_headers=None, footer_function=None,
                    grouping=None, config=None):
    """Write *src_ws* into *dest_ws* under *header_order*.

    Headers in *header_order* that the source lacks become empty columns.
    Returns a ``BuildReport``.
    """
    config = config or DEFAULTS
    header_row = header_row or config["header_row"]
    function = FooterFunction.parse(footer_function or config["footer_function"])

    table = read_source_table(src_ws, header_row=header_row)
    dest_headers = list(header_order) if header_order else table.headers.names()
    if not dest_headers:
        raise ValueError(f"Sheet '{src_ws.title}' has no headers to reshuffle")
    for header in dest_headers:
        if header not in table.headers:
            logger.warning("Header '%s' not in source '%s'; column left empty",
                           header, table.name)

    rows = sort_rows(table, table.rows, [SortRule.parse(r) for r in sort_rules or []])
    report = BuildReport(sheets=[dest_ws.title])
    write_header_row(dest_ws, 1, dest_headers)
    footer_cols = _footer_columns(dest_headers, footer_headers or [])

    if grouping is None:
        layout = RowLayout.for_rows(1, len(rows))
        for offset, row in enumerate(rows):
            copy_row(table, row, dest_ws, layout.data_start_row + offset,
                     dest_headers, layout, report, config)
        if footer_cols and rows:
            for _, col in footer_cols:
                cell = dest_ws.cell(row=layout.footer_row, column=col)
                cell.value = as_formula(column_aggregate(
                    function, col, layout.data_start_row, layout.data_end_row))
                cell.font = TOTAL_FONT
            _write_label(dest_ws, layout.footer_row, {c for _, c in footer_cols},
                         footer_label(function))
    else:
        _write_groups(table, rows, dest_ws, dest_headers, grouping, footer_cols,
                      function, report, config)

    logger.info("Reshuffled '%s' -> '%s': %d rows, %d formulas rewritten, %d failed",
                table.name, dest_ws.title, report.rows_written,
                report.formulas_rewritten, report.formulas_failed)
    if report.missing_headers:
        logger.warning("Formulas need headers missing from the output: %s",
                       ", ".join(report.missing_headers))
    return report


def _write_groups(table, rows, dest_ws, dest_headers, grouping, footer_cols,
                  function, report, config):
    if grouping.header not in table.headers:
        raise ValueError(f"Category header '{grouping.header}' not in source '{table.name}'")
    summary_cols = _footer_columns(dest_headers, grouping.summary_headers)
    groups = group_rows(table, rows, grouping.header, config["uncategorized_name"])
    width = len(dest_headers)

    spans = []  # (subtotal_row, first_data_row, last_data_row)
    current = 2
    for index, (key, group) in enumerate(groups.items()):
        if index:
            current += 1  # blank separator row

        title = dest_ws.cell(row=current, column=1, value=f"{grouping.header}: {key}")
        title.font = TITLE_FONT
        if width > 1:
            dest_ws.merge_cells(start_row=current, start_column=1,
                                end_row=current, end_column=width)
        current += 1

        start = current
        layout = RowLayout(header_row=1, data_start_row=start,
                           footer_row=start + len(group))
        for row in group:
            copy_row(table, row, dest_ws, current, dest_headers, layout, report, config)
            current += 1

        for _, col in summary_cols:
            cell = dest_ws.cell(row=current, column=col)
            cell.value = as_formula(column_aggregate(FooterFunction.SUM, col, start, current - 1))
            cell.font = TOTAL_FONT
        _write_label(dest_ws, current, {c for _, c in summary_cols}, f"{key} 小计")
        spans.append((current, start, current - 1))
        logger.debug("Group '%s': rows %d-%d, subtotal row %d", key, start, current - 1, current)
        current += 1

    if not footer_cols or not spans:
        return
    summary_set = {c for _, c in summary_cols}
    for _, col in footer_cols:
        if col in summary_set and function == FooterFunction.SUM:
            text = multi_cell_aggregate(function, [(None, col, sub) for sub, _, _ in spans])
        else:
            text = multi_range_aggregate(function, [(None, col, a, b) for _, a, b in spans])
        cell = dest_ws.cell(row=current, column=col, value=as_formula(text))
        cell.font = TOTAL_FONT
    _write_label(dest_ws, current, {c for _, c in footer_cols}, footer_label(function))
