"""
Value types shared by the remapping engine.

``RowLayout`` describes where a table's header and data rows live;
``RemapOutcome`` is the tagged result returned for a single reference or a
whole formula.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class RowLayout:
    """Row geometry of a source or destination table.

    ``footer_row`` is the first row *after* the data block (usually the
    total row).  When set, no data reference may point at or beyond it.
    """
    header_row: int
    data_start_row: Optional[int] = None
    footer_row: Optional[int] = None

    def __post_init__(self):
        if self.header_row < 1:
            raise ValueError(f"header_row must be >= 1, got {self.header_row}")
        if self.data_start_row is None:
            object.__setattr__(self, "data_start_row", self.header_row + 1)
        if self.data_start_row <= self.header_row:
            raise ValueError(
                f"data_start_row ({self.data_start_row}) must be below "
                f"header_row ({self.header_row})"
            )
        if self.footer_row is not None and self.footer_row < self.data_start_row:
            raise ValueError(
                f"footer_row ({self.footer_row}) must not precede "
                f"data_start_row ({self.data_start_row})"
            )

    @classmethod
    def for_rows(cls, header_row, row_count, data_start_row=None):
        """Layout whose data block holds exactly *row_count* rows."""
        start = data_start_row if data_start_row is not None else header_row + 1
        return cls(header_row=header_row, data_start_row=start,
                   footer_row=start + row_count)

    @property
    def data_end_row(self):
        """Last data row, or None when the block is unbounded."""
        if self.footer_row is None:
            return None
        return self.footer_row - 1

    def is_valid_row(self, row):
        """True if *row* is the header row or lies inside the data block."""
        if row == self.header_row:
            return True
        if row < self.data_start_row:
            return False
        if self.footer_row is not None and row >= self.footer_row:
            return False
        return True


REWRITTEN = "rewritten"
MISSING_HEADERS = "missing_headers"
UNRESOLVABLE = "unresolvable"


@dataclass(frozen=True)
class RemapOutcome:
    """Result of remapping one reference token or one formula.

    * ``rewritten``        – ``text`` holds the new reference / formula.
    * ``missing_headers``  – a referenced header is absent from the
      destination; ``missing_headers`` names them.
    * ``unresolvable``     – the source column has no header, provenance is
      ambiguous, or the row fell outside the destination span.
      ``missing_headers`` may still carry names from a best-effort scan.
    """
    status: str
    text: Optional[str] = None
    missing_headers: tuple = field(default_factory=tuple)
    reason: Optional[str] = None

    @classmethod
    def rewritten(cls, text):
        return cls(status=REWRITTEN, text=text)

    @classmethod
    def missing(cls, names, reason="header not in destination"):
        return cls(status=MISSING_HEADERS, missing_headers=tuple(names), reason=reason)

    @classmethod
    def unresolvable(cls, reason, names=()):
        return cls(status=UNRESOLVABLE, missing_headers=tuple(names), reason=reason)

    @property
    def ok(self):
        return self.status == REWRITTEN
