"""
Column letter <-> 1-based index conversion.

Spreadsheet columns use bijective base-26 with no zero digit:
A=1, ..., Z=26, AA=27, AZ=52, BA=53.
"""


def col_letter_to_index(col_str):
    """Convert column letter(s) to 1-based index. A=1, B=2, ..., Z=26, AA=27."""
    result = 0
    for char in col_str.upper():
        result = result * 26 + (ord(char) - ord('A') + 1)
    return result


def index_to_col_letter(index):
    """Convert 1-based column index to letter(s). 1=A, 2=B, ..., 26=Z, 27=AA."""
    if index < 1:
        raise ValueError(f"Column index must be >= 1, got {index}")
    result = ""
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        result = chr(65 + remainder) + result
    return result
