"""
Workbook loading and naming helpers.
"""

import datetime
import logging
import os
import re
import zipfile

from openpyxl import load_workbook

logger = logging.getLogger(__name__)

MAX_SHEET_NAME_LENGTH = 31
_INVALID_SHEET_CHARS = re.compile(r"[:\\/?*\[\]]")


def load_source_workbook(path):
    """Open an .xlsx file for reading formulas (not cached values).

    Raises ``ValueError`` with a readable message for files openpyxl would
    choke on: missing, empty, legacy ``.xls`` or not a zip container.
    """
    if not os.path.exists(path):
        raise ValueError(f"File not found: {path}")
    if os.path.getsize(path) == 0:
        raise ValueError(f"File is empty: {path}")
    ext = os.path.splitext(path)[1].lower()
    if ext == ".xls":
        raise ValueError(
            f"{path} is a legacy .xls file; open it in Excel and save it as "
            f".xlsx first"
        )
    if not zipfile.is_zipfile(path):
        raise ValueError(
            f"{path} is not a valid .xlsx file (it may be corrupted or "
            f"incompletely downloaded)"
        )
    logger.info("Loading workbook: %s", path)
    wb = load_workbook(path, data_only=False)
    if not wb.sheetnames:
        raise ValueError(f"{path} contains no worksheets")
    return wb


def get_sheet(wb, sheet_name=None):
    """Return *sheet_name* from *wb*, or the first sheet when None."""
    if sheet_name is None:
        return wb.worksheets[0]
    if sheet_name not in wb.sheetnames:
        raise ValueError(
            f"Sheet '{sheet_name}' not found; available: {', '.join(wb.sheetnames)}"
        )
    return wb[sheet_name]


def safe_sheet_name(name, taken=(), fallback="未分类"):
    """Make *name* a legal, unused worksheet title.

    Strips ``: \\ / ? * [ ]``, truncates to 31 characters and appends
    ``_2``, ``_3``... when the result collides with *taken*.
    """
    text = _INVALID_SHEET_CHARS.sub("_", str(name) if name is not None else "").strip()
    text = text.strip("'")
    if not text:
        text = fallback
    text = text[:MAX_SHEET_NAME_LENGTH]
    existing = {t.lower() for t in taken}
    candidate = text
    counter = 2
    while candidate.lower() in existing:
        suffix = f"_{counter}"
        candidate = text[:MAX_SHEET_NAME_LENGTH - len(suffix)] + suffix
        counter += 1
    return candidate


def default_output_name(original_file_name, suffix="", now=None):
    """``<stem>[_<suffix>]_<YYYYmmdd_HHMMSS>`` for an output workbook."""
    now = now or datetime.datetime.now()
    stem = os.path.splitext(os.path.basename(original_file_name))[0]
    stamp = now.strftime("%Y%m%d_%H%M%S")
    if suffix:
        return f"{stem}_{suffix}_{stamp}"
    return f"{stem}_{stamp}"


def save_workbook(wb, output_path):
    """Save *wb*, creating the parent directory if needed."""
    out_dir = os.path.dirname(output_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    wb.save(output_path)
    logger.info("Saved workbook: %s", output_path)
    return output_path
