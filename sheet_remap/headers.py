"""
Header row readers.

A ``HeaderMap`` records, for one worksheet header row, which header text sits
in which physical column.  Header text is the stable identity used to move
references between layouts: columns move, header names do not.
"""

import logging

from .cells import cell_display_text

logger = logging.getLogger(__name__)


class HeaderMap:
    """Physical column index (1-based) -> trimmed header text.

    ``table`` names the sheet/table the headers were read from so callers can
    tell two maps apart when a formula's provenance matters.
    """

    def __init__(self, columns=None, table=None, width=None, include_empty=True):
        self._columns = dict(sorted((columns or {}).items()))
        self.table = table
        self.include_empty = include_empty
        self.width = width if width is not None else max(self._columns, default=0)
        self._by_name = {}
        for col, name in self._columns.items():
            # duplicate header text: the first physical column wins
            self._by_name.setdefault(name, col)

    @classmethod
    def from_list(cls, headers, table=None, start_col=1):
        """Build a map from a positional list; blank entries keep their slot."""
        columns = {}
        for offset, name in enumerate(headers):
            text = str(name).strip() if name is not None else ""
            if text:
                columns[start_col + offset] = text
        return cls(columns, table=table, width=start_col + len(headers) - 1)

    def lookup_by_column(self, col):
        return self._columns.get(col)

    def lookup_by_name(self, name):
        return self._by_name.get(name)

    def header_list(self):
        """Header names in column order.

        With ``include_empty`` blank header cells yield ``""`` so the list
        index equals ``column - 1``; otherwise blanks are dropped.
        """
        if not self.include_empty:
            return list(self._columns.values())
        return [self._columns.get(c, "") for c in range(1, self.width + 1)]

    def names(self):
        """Distinct header names in column order."""
        return list(self._by_name)

    def items(self):
        return self._columns.items()

    def __contains__(self, name):
        return name in self._by_name

    def __len__(self):
        return len(self._columns)

    def __repr__(self):
        return f"HeaderMap(table={self.table!r}, columns={self._columns!r})"


def build_header_map(ws, header_row=1, include_empty=True, table=None):
    """Read *header_row* of worksheet *ws* into a ``HeaderMap``.

    Each cell contributes its display text, trimmed; empty cells contribute
    nothing.  ``include_empty`` only affects ``header_list()``.
    """
    columns = {}
    width = 0
    max_col = ws.max_column or 0
    for col in range(1, max_col + 1):
        text = cell_display_text(ws.cell(row=header_row, column=col))
        if text:
            columns[col] = text
            width = col
    if include_empty:
        width = max(width, max_col if columns else 0)
    logger.debug("Read %d headers from %s row %d", len(columns), ws.title, header_row)
    return HeaderMap(columns, table=table if table is not None else ws.title,
                     width=width, include_empty=include_empty)


def read_sheet_headers(ws, header_row=1, include_empty=False):
    """Return the de-duplicated header names of one sheet, in column order."""
    headers = []
    for name in build_header_map(ws, header_row, include_empty).header_list():
        if name and name not in headers:
            headers.append(name)
    return headers


def read_multiple_sheet_headers(wb, sheet_names, header_row=1, include_empty=False):
    """Ordered union of the headers of several sheets in *wb*.

    Sheets that do not exist in the workbook are skipped with a warning.
    """
    headers = []
    seen = set()
    for sheet_name in sheet_names:
        if sheet_name not in wb.sheetnames:
            logger.warning("Sheet '%s' not found; skipping its headers", sheet_name)
            continue
        for name in read_sheet_headers(wb[sheet_name], header_row, include_empty):
            if name not in seen:
                seen.add(name)
                headers.append(name)
    return headers
