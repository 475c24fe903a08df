"""
Reference remapping.

Moves one reference token from a source layout into a destination layout.
Columns travel by *header name*: the source column letter is resolved to the
header above it, and that header's position in the destination header order
gives the new column.  Rows travel by the destination's row geometry:

  * a reference to the source header row points at the destination header row;
  * an absolute data row keeps its offset from the header row;
  * a relative data row keeps its distance from the formula's own row.

A row that lands outside the destination's header row / data block is
rejected, so a rewritten formula can never point into a total row.
"""

import logging
from dataclasses import dataclass, field

from .column_codec import index_to_col_letter
from .headers import HeaderMap
from .models import UNRESOLVABLE, RemapOutcome, RowLayout
from .tokenizer import Endpoint

logger = logging.getLogger(__name__)

UNKNOWN_COLUMN = "source column has no header"
AMBIGUOUS_PROVENANCE = "column resolves to different headers in candidate tables"
ROW_OUT_OF_BOUNDS = "row falls outside the destination header/data rows"


@dataclass(frozen=True)
class RemapContext:
    """Everything needed to move references out of one source formula cell.

    ``source_headers`` is the header map of the table the formula was read
    from.  ``alternate_headers`` lists other candidate tables when the caller
    genuinely does not know which table a formula came from; a column that
    means different things in different candidates is rejected.
    """
    source_headers: HeaderMap
    dest_headers: tuple
    source_layout: RowLayout
    dest_layout: RowLayout
    source_row: int
    dest_row: int
    alternate_headers: tuple = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "dest_headers", tuple(self.dest_headers))
        object.__setattr__(self, "alternate_headers", tuple(self.alternate_headers))

    def at(self, source_row, dest_row):
        """Same context for another formula cell."""
        return RemapContext(
            source_headers=self.source_headers,
            dest_headers=self.dest_headers,
            source_layout=self.source_layout,
            dest_layout=self.dest_layout,
            source_row=source_row,
            dest_row=dest_row,
            alternate_headers=self.alternate_headers,
        )

    def dest_position(self, header):
        """1-based destination column of *header*, or None."""
        try:
            return self.dest_headers.index(header) + 1
        except ValueError:
            return None


def resolve_header(col_idx, ctx):
    """Return ``(header_name, failure_reason)`` for a source column index."""
    maps = (ctx.source_headers,) + ctx.alternate_headers
    names = []
    for header_map in maps:
        name = header_map.lookup_by_column(col_idx)
        if name is not None and name not in names:
            names.append(name)
    if not names:
        return None, UNKNOWN_COLUMN
    if len(names) > 1:
        return None, AMBIGUOUS_PROVENANCE
    return names[0], None


def remap_column(col_idx, ctx):
    """Map a source column index to a destination column index.

    Returns ``(new_index, outcome)``; *outcome* is None on success.
    """
    header, reason = resolve_header(col_idx, ctx)
    if header is None:
        return None, RemapOutcome.unresolvable(reason)
    position = ctx.dest_position(header)
    if position is None:
        return None, RemapOutcome.missing([header])
    return position, None


def remap_row(row, is_absolute, ctx):
    """Map a source row number to a destination row number, or None."""
    src = ctx.source_layout
    dest = ctx.dest_layout

    if row == src.header_row:
        return dest.header_row

    if is_absolute:
        new_row = dest.header_row + (row - src.header_row)
        if new_row < dest.header_row:
            return None
    else:
        new_row = ctx.dest_row + (row - ctx.source_row)

    if new_row < 1 or not dest.is_valid_row(new_row):
        return None
    return new_row


def remap_endpoint(endpoint, ctx):
    """Remap one side of a reference.  Returns a ``RemapOutcome``."""
    col = None
    if endpoint.col is not None:
        new_idx, failure = remap_column(endpoint.col_idx, ctx)
        if failure is not None:
            return failure
        col = index_to_col_letter(new_idx)

    row = None
    if endpoint.row is not None:
        row = remap_row(endpoint.row, endpoint.row_abs, ctx)
        if row is None:
            return RemapOutcome.unresolvable(ROW_OUT_OF_BOUNDS)

    moved = Endpoint(col=col, col_abs=endpoint.col_abs, row=row, row_abs=endpoint.row_abs)
    return RemapOutcome.rewritten(moved.render())


def remap_token(token, ctx):
    """Remap a whole ``ReferenceToken``.

    Range endpoints move independently and keep their written left/right
    order.  If any endpoint is unresolvable the token is unresolvable;
    otherwise missing header names from both endpoints are combined.
    """
    results = [remap_endpoint(ep, ctx) for ep in token.endpoints]

    unresolved = [r for r in results if r.status == UNRESOLVABLE]
    if unresolved:
        logger.debug("Reference %s unresolvable: %s", token.raw, unresolved[0].reason)
        return unresolved[0]

    missing = []
    for r in results:
        for name in r.missing_headers:
            if name not in missing:
                missing.append(name)
    if missing:
        logger.debug("Reference %s needs missing headers %s", token.raw, missing)
        return RemapOutcome.missing(missing)

    return RemapOutcome.rewritten(":".join(r.text for r in results))
