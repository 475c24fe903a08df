"""
Reference tokenizer.

Finds the same-sheet cell references in a formula string:

  * single cell      ``A1``, ``$A$1``, ``A$1``
  * cell range       ``A1:C10``
  * column range     ``A:C``
  * row range        ``2:10``

References preceded by a sheet qualifier (``'Summary'!A1``, ``Sheet2!A1``)
point at sheets whose layout we do not control and are dropped, as are
matches inside string literals or quoted sheet names (``'Sales Q1'!``) and
matches that are really part of a name (``LOG10(``, ``Table1[``).  Everything
that is not returned passes through the rewriter untouched.
"""

import re
from dataclasses import dataclass
from typing import Optional

from .column_codec import col_letter_to_index

SINGLE_CELL = "cell"
CELL_RANGE = "cell_range"
COLUMN_RANGE = "column_range"
ROW_RANGE = "row_range"

# Excel's last column is XFD; longer letter runs are names, not columns.
MAX_COLUMN_INDEX = 16384

# How far back to look for a sheet qualifier.
SHEET_LOOKBEHIND = 50

_REF_PATTERN = re.compile(
    # A1 or A1:B2
    r"(?P<c1abs>\$?)(?P<c1>[A-Z]+)(?P<r1abs>\$?)(?P<r1>\d+)"
    r"(?::(?P<c2abs>\$?)(?P<c2>[A-Z]+)(?P<r2abs>\$?)(?P<r2>\d+))?"
    # A:C
    r"|(?P<cc1abs>\$?)(?P<cc1>[A-Z]+):(?P<cc2abs>\$?)(?P<cc2>[A-Z]+)"
    # 2:10
    r"|(?P<rr1abs>\$?)(?P<rr1>\d+):(?P<rr2abs>\$?)(?P<rr2>\d+)",
    re.IGNORECASE,
)

_QUOTED_SHEET_SUFFIX = re.compile(r"'(?:[^']|'')*'!\s*$")
_BARE_SHEET_SUFFIX = re.compile(r"[\w.]+!\s*$")

# Characters that, directly before or after a match, mean the match is part
# of a longer name (function, defined name, table) rather than a reference.
_NAME_BEFORE = set("_.")
_NAME_AFTER = set("_.(![")


@dataclass(frozen=True)
class Endpoint:
    """One side of a reference; ``col`` or ``row`` is None for bare ranges."""
    col: Optional[str] = None
    col_abs: bool = False
    row: Optional[int] = None
    row_abs: bool = False

    @property
    def col_idx(self):
        return col_letter_to_index(self.col) if self.col else None

    def render(self):
        parts = []
        if self.col is not None:
            parts.append(("$" if self.col_abs else "") + self.col)
        if self.row is not None:
            parts.append(("$" if self.row_abs else "") + str(self.row))
        return "".join(parts)


@dataclass(frozen=True)
class ReferenceToken:
    """A reference found in a formula, with its span in the original text."""
    kind: str
    first: Endpoint
    last: Optional[Endpoint]
    start: int
    end: int
    raw: str

    @property
    def endpoints(self):
        if self.last is None:
            return (self.first,)
        return (self.first, self.last)


def string_literal_spans(formula):
    """Return ``(start, end)`` spans of double-quoted literals (``""`` escapes)."""
    spans = []
    i = 0
    n = len(formula)
    while i < n:
        if formula[i] == '"':
            begin = i
            i += 1
            while i < n:
                if formula[i] == '"':
                    if i + 1 < n and formula[i + 1] == '"':
                        i += 2
                        continue
                    break
                i += 1
            spans.append((begin, i + 1))
        i += 1
    return spans


def quoted_sheet_spans(formula):
    """Return ``(start, end)`` spans of ``'Sheet name'!`` qualifiers.

    Quotes inside double-quoted literals are ignored; ``''`` is an escaped
    quote within the name.
    """
    literals = string_literal_spans(formula)
    spans = []
    i = 0
    n = len(formula)
    while i < n:
        literal_end = next((e for s, e in literals if s == i), None)
        if literal_end is not None:
            i = literal_end
            continue
        if formula[i] == "'":
            begin = i
            i += 1
            while i < n:
                if formula[i] == "'":
                    if i + 1 < n and formula[i + 1] == "'":
                        i += 2
                        continue
                    break
                i += 1
            if i + 1 < n and formula[i + 1] == "!":
                spans.append((begin, i + 2))
                i += 2
                continue
        i += 1
    return spans


def has_sheet_qualifier(formula, pos):
    """True if the text right before *pos* is ``'Name'!`` or ``Name!``."""
    before = formula[max(0, pos - SHEET_LOOKBEHIND):pos]
    return bool(_QUOTED_SHEET_SUFFIX.search(before) or _BARE_SHEET_SUFFIX.search(before))


def _is_name_fragment(formula, start, end):
    if start > 0:
        prev = formula[start - 1]
        if prev.isalnum() or prev in _NAME_BEFORE:
            return True
    if end < len(formula):
        nxt = formula[end]
        if nxt.isalnum() or nxt in _NAME_AFTER:
            return True
    return False


def _endpoint(col_abs, col, row_abs, row):
    return Endpoint(
        col=col.upper() if col else None,
        col_abs=col_abs == "$",
        row=int(row) if row else None,
        row_abs=row_abs == "$",
    )


def _token_from_match(m):
    g = m.groupdict()
    if g["c1"]:
        first = _endpoint(g["c1abs"], g["c1"], g["r1abs"], g["r1"])
        if g["c2"]:
            last = _endpoint(g["c2abs"], g["c2"], g["r2abs"], g["r2"])
            kind = CELL_RANGE
        else:
            last = None
            kind = SINGLE_CELL
    elif g["cc1"]:
        first = _endpoint(g["cc1abs"], g["cc1"], "", None)
        last = _endpoint(g["cc2abs"], g["cc2"], "", None)
        kind = COLUMN_RANGE
    else:
        first = _endpoint("", None, g["rr1abs"], g["rr1"])
        last = _endpoint("", None, g["rr2abs"], g["rr2"])
        kind = ROW_RANGE
    return ReferenceToken(kind=kind, first=first, last=last,
                          start=m.start(), end=m.end(), raw=m.group())


def _is_plausible(token):
    for ep in token.endpoints:
        if ep.col is not None and ep.col_idx > MAX_COLUMN_INDEX:
            return False
        if ep.row is not None and ep.row < 1:
            return False
    return True


def tokenize(formula):
    """Return the remappable references in *formula*, left to right.

    Offsets are into *formula* exactly as given (a leading ``=`` is kept).
    Never raises; text that does not look like a same-sheet reference is
    simply not reported.
    """
    if not formula:
        return []

    # text inside literals and quoted sheet names is never a reference
    skipped = string_literal_spans(formula) + quoted_sheet_spans(formula)

    def _in_skipped(pos):
        return any(s <= pos < e for s, e in skipped)

    tokens = []
    for m in _REF_PATTERN.finditer(formula):
        if _in_skipped(m.start()):
            continue
        if _is_name_fragment(formula, m.start(), m.end()):
            continue
        if has_sheet_qualifier(formula, m.start()):
            continue
        token = _token_from_match(m)
        if _is_plausible(token):
            tokens.append(token)
    return tokens
