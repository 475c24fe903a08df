"""
Category split.

Splits one table into a workbook with a summary sheet and one detail sheet
per distinct value of a category column.

Detail sheet layout::

    row 1   back-link to the summary sheet
    row 2   title  "<category header>: <value>"
    row 3   headers
    row 4+  data rows
    row 4+n footer (optional)

Summary sheet layout::

    row 1   title
    row 2   headers
    row 3+  one row per category, hyperlinked to its detail sheet
    last    footer (optional)
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font

from .aggregation import (
    FooterFunction,
    as_formula,
    cell_reference,
    column_aggregate,
    cross_sheet_aggregate,
    footer_label_for,
    multi_cell_aggregate,
    multi_range_aggregate,
    quote_sheet_name,
)
from .cells import Hyperlink, write_cell_content
from .config import DEFAULTS
from .models import RowLayout
from .reshuffle import group_rows
from .transfer import TOTAL_FONT, BuildReport, copy_row, read_source_table, write_header_row
from .workbook_io import safe_sheet_name

logger = logging.getLogger(__name__)

SUMMARY_TITLE_ROW = 1
SUMMARY_HEADER_ROW = 2
SUMMARY_DATA_ROW = 3

DETAIL_LINK_ROW = 1
DETAIL_TITLE_ROW = 2
DETAIL_HEADER_ROW = 3
DETAIL_DATA_ROW = 4

TITLE_FONT = Font(bold=True, size=14)
LINK_FONT = Font(color="0563C1", underline="single")


@dataclass
class SplitPlan:
    """What to split on and which totals to build.

    ``footer_links`` maps a summary header to the detail header whose footer
    cell the summary row should reference.
    """
    category_header: str
    detail_headers: list = field(default_factory=list)
    summary_headers: list = field(default_factory=list)
    detail_footers: dict = field(default_factory=dict)
    summary_footers: dict = field(default_factory=dict)
    footer_links: dict = field(default_factory=dict)
    summary_title: Optional[str] = None

    def __post_init__(self):
        self.detail_footers = {h: FooterFunction.parse(f) for h, f in self.detail_footers.items()}
        self.summary_footers = {h: FooterFunction.parse(f) for h, f in self.summary_footers.items()}

    def validate(self, source_headers):
        if self.category_header not in source_headers:
            raise ValueError(f"Category header '{self.category_header}' not in source")
        if not self.detail_headers:
            raise ValueError("detail_headers must not be empty")
        for summary_header, detail_header in self.footer_links.items():
            if detail_header not in self.detail_footers:
                raise ValueError(
                    f"'{summary_header}' links to '{detail_header}', which has no detail footer"
                )


@dataclass
class _Category:
    key: str
    sheet: str
    rows: list
    footer_row: Optional[int] = None

    @property
    def data_end_row(self):
        return DETAIL_DATA_ROW + len(self.rows) - 1


def _link_cell(cell, text, sheet):
    write_cell_content(cell, Hyperlink(text=text, location=f"{quote_sheet_name(sheet)}!A1"))
    cell.font = LINK_FONT


def _write_detail_sheet(wb, table, category, plan, config, report):
    ws = wb.create_sheet(category.sheet)
    _link_cell(ws.cell(row=DETAIL_LINK_ROW, column=1), config["back_link_text"],
               config["summary_sheet_name"])

    title = ws.cell(row=DETAIL_TITLE_ROW, column=1,
                    value=f"{plan.category_header}: {category.key}")
    title.font = TITLE_FONT
    width = len(plan.detail_headers)
    if width > 1:
        ws.merge_cells(start_row=DETAIL_TITLE_ROW, start_column=1,
                       end_row=DETAIL_TITLE_ROW, end_column=width)

    write_header_row(ws, DETAIL_HEADER_ROW, plan.detail_headers)
    layout = RowLayout.for_rows(DETAIL_HEADER_ROW, len(category.rows))
    for offset, row in enumerate(category.rows):
        copy_row(table, row, ws, DETAIL_DATA_ROW + offset, plan.detail_headers,
                 layout, report, config)

    last = layout.data_end_row
    ws.auto_filter.ref = f"A{DETAIL_HEADER_ROW}:{cell_reference(width, max(last, DETAIL_HEADER_ROW))}"

    if plan.detail_footers and category.rows:
        category.footer_row = layout.footer_row
        used = {}
        for header, function in plan.detail_footers.items():
            if header not in plan.detail_headers:
                continue
            col = plan.detail_headers.index(header) + 1
            cell = ws.cell(row=layout.footer_row, column=col,
                           value=as_formula(column_aggregate(function, col, DETAIL_DATA_ROW, last)))
            cell.font = TOTAL_FONT
            used[col] = function
        if used and 1 not in used:
            ws.cell(row=layout.footer_row, column=1,
                    value=footer_label_for(used.values())).font = TOTAL_FONT

    report.sheets.append(ws.title)
    logger.info("Detail sheet '%s': %d rows", ws.title, len(category.rows))
    return ws


def _summary_cell_text(header, category, plan, config):
    """Formula (or placeholder) for one summary cell of *category*."""
    detail = plan.detail_headers
    linked = plan.footer_links.get(header)
    if linked is not None:
        if linked in detail and category.footer_row is not None:
            return "=" + cell_reference(detail.index(linked) + 1, category.footer_row,
                                        sheet=category.sheet)
        return config["unresolved_placeholder"]
    if not category.rows:
        return config["unresolved_placeholder"]
    if header in plan.summary_footers and header in detail:
        return as_formula(cross_sheet_aggregate(
            plan.summary_footers[header], category.sheet, detail.index(header) + 1,
            DETAIL_DATA_ROW, category.data_end_row))
    if header in detail:
        return "=" + cell_reference(detail.index(header) + 1, DETAIL_DATA_ROW,
                                    sheet=category.sheet)
    return config["unresolved_placeholder"]


def _write_summary_sheet(ws, categories, plan, config):
    headers = plan.summary_headers or [plan.category_header]
    title = plan.summary_title or f"{plan.category_header} 汇总"
    ws.cell(row=SUMMARY_TITLE_ROW, column=1, value=title).font = TITLE_FONT
    if len(headers) > 1:
        ws.merge_cells(start_row=SUMMARY_TITLE_ROW, start_column=1,
                       end_row=SUMMARY_TITLE_ROW, end_column=len(headers))
    write_header_row(ws, SUMMARY_HEADER_ROW, headers)

    for offset, category in enumerate(categories):
        row = SUMMARY_DATA_ROW + offset
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=row, column=col)
            if header == plan.category_header:
                _link_cell(cell, category.key, category.sheet)
            else:
                cell.value = _summary_cell_text(header, category, plan, config)

    if not plan.summary_footers or not categories:
        return
    footer_row = SUMMARY_DATA_ROW + len(categories)
    used = {}
    for header, function in plan.summary_footers.items():
        if header not in headers:
            continue
        col = headers.index(header) + 1
        text = _summary_footer_text(header, function, categories, plan)
        if text is None:
            continue
        cell = ws.cell(row=footer_row, column=col, value=as_formula(text))
        cell.font = TOTAL_FONT
        used[col] = function
    if used and 1 not in used:
        ws.cell(row=footer_row, column=1, value=footer_label_for(used.values())).font = TOTAL_FONT


def _summary_footer_text(header, function, categories, plan):
    detail = plan.detail_headers
    linked = plan.footer_links.get(header)
    if linked is not None and linked in detail:
        col = detail.index(linked) + 1
        cells = [(c.sheet, col, c.footer_row) for c in categories if c.footer_row is not None]
        return multi_cell_aggregate(function, cells) if cells else None
    if header in detail:
        col = detail.index(header) + 1
        spans = [(c.sheet, col, DETAIL_DATA_ROW, c.data_end_row) for c in categories if c.rows]
        return multi_range_aggregate(function, spans) if spans else None
    return None


def split_by_category(src_ws, plan, config=None, header_row=None):
    """Build a new workbook splitting *src_ws* by ``plan.category_header``.

    Returns ``(workbook, BuildReport)``.
    """
    config = config or DEFAULTS
    header_row = header_row or config["header_row"]
    table = read_source_table(src_ws, header_row=header_row,
                              deduplicate=config.get("deduplicate_rows", True))
    if not plan.detail_headers:
        plan.detail_headers = table.headers.names()
    plan.validate(table.headers)

    groups = group_rows(table, table.rows, plan.category_header, config["uncategorized_name"])
    wb = Workbook()
    summary_ws = wb.active
    summary_ws.title = config["summary_sheet_name"]

    taken = [summary_ws.title]
    categories = []
    for key in sorted(groups):
        sheet = safe_sheet_name(key, taken, fallback=config["uncategorized_name"])
        taken.append(sheet)
        categories.append(_Category(key=key, sheet=sheet, rows=groups[key]))

    report = BuildReport(sheets=[summary_ws.title])
    for category in categories:
        _write_detail_sheet(wb, table, category, plan, config, report)
    _write_summary_sheet(summary_ws, categories, plan, config)

    logger.info("Split '%s' by '%s' into %d categories (%d formulas rewritten, %d failed)",
                table.name, plan.category_header, len(categories),
                report.formulas_rewritten, report.formulas_failed)
    if report.missing_headers:
        logger.warning("Formulas need headers missing from the detail sheets: %s",
                       ", ".join(report.missing_headers))
    return wb, report
