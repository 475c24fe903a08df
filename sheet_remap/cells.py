"""
Cell content classification.

An openpyxl cell can hold a literal, a formula string, an ``ArrayFormula``
object or a value decorated with a hyperlink.  ``read_cell_content`` decides
which of those a cell is exactly once, so the remapping code only ever sees
``Formula`` objects and the sheet builders only need one ``isinstance`` check.
"""

import datetime
from dataclasses import dataclass
from typing import Any, Optional

from openpyxl.worksheet.formula import ArrayFormula
from openpyxl.worksheet.hyperlink import Hyperlink as _OpenpyxlHyperlink


@dataclass(frozen=True)
class Literal:
    value: Any = None


@dataclass(frozen=True)
class Formula:
    text: str  # always starts with '='


@dataclass(frozen=True)
class Hyperlink:
    text: str
    target: Optional[str] = None
    location: Optional[str] = None


def _formula_text(value):
    if isinstance(value, ArrayFormula):
        text = value.text or ""
    elif isinstance(value, str):
        text = value
    else:
        return None
    if not text:
        return None
    return text if text.startswith("=") else "=" + text


def read_cell_content(cell):
    """Classify an openpyxl cell as ``Literal``, ``Formula`` or ``Hyperlink``."""
    if cell is None:
        return Literal(None)
    value = cell.value
    if cell.data_type == "f" or isinstance(value, ArrayFormula):
        text = _formula_text(value)
        if text:
            return Formula(text)
    link = getattr(cell, "hyperlink", None)
    if link is not None:
        return Hyperlink(text=cell_display_text(cell), target=link.target,
                         location=link.location)
    return Literal(value)


def write_cell_content(cell, content):
    """Write a ``CellContent`` back into an openpyxl cell."""
    if isinstance(content, Formula):
        cell.value = content.text
    elif isinstance(content, Hyperlink):
        cell.value = content.text
        cell.hyperlink = _OpenpyxlHyperlink(ref=cell.coordinate, target=content.target,
                                            location=content.location)
    else:
        cell.value = content.value


def format_display_value(value):
    """Render a raw cell value the way a spreadsheet would show it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, datetime.datetime):
        if value.time() == datetime.time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def cell_display_text(cell):
    """Trimmed display text of *cell* ('' for empty cells)."""
    if cell is None:
        return ""
    return format_display_value(cell.value).strip()


def sort_key(value):
    """Key that orders mixed cell values: numbers, then dates, then text, blanks last."""
    if value is None or value == "":
        return (3, "")
    if isinstance(value, bool):
        return (2, str(value))
    if isinstance(value, (int, float)):
        return (0, value)
    if isinstance(value, (datetime.datetime, datetime.date)):
        return (1, value.isoformat())
    return (2, str(value))
