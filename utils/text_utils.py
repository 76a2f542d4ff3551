"""
Text utilities for report headers, manufacturer names and filenames.
"""

import re
from typing import Optional

_HEADER_STRIP = re.compile(r"[^a-z0-9%]")
_REPORT_EXTENSION = re.compile(r"\.(xlsx|xls|csv)$", re.IGNORECASE)
_REPORT_SUFFIX = re.compile(r"\s*(?:\breport\b|\(\d+\))\s*$", re.IGNORECASE)


def normalize_header(value) -> str:
    """
    Normalize a spreadsheet header cell for substring matching.

    - "Mfr #"            → "mfr"
    - " Cost Per Unit "  → "costperunit"
    - "% of Total"       → "%oftotal"
    - None               → ""
    """
    if value is None:
        return ""
    return _HEADER_STRIP.sub("", str(value).lower().strip())


def manufacturer_names_overlap(a: Optional[str], b: Optional[str]) -> bool:
    """
    Loose manufacturer name comparison.

    True when either name contains the other or both start with the same
    word ("BD Medical" vs "Becton Dickinson" is False, "BD" vs "BD Medical" is True).
    Blank names never overlap.
    """
    left = (a or "").strip().lower()
    right = (b or "").strip().lower()
    if not left or not right:
        return False

    if left in right or right in left:
        return True

    return left.split()[0] == right.split()[0]


def customer_name_from_filename(filename: Optional[str], default: str = "Customer") -> str:
    """
    Derive a customer name from an uploaded report filename.

    - "Acme Clinic REPORT.xlsx" → "Acme Clinic"
    - "Acme Clinic (2).xls"     → "Acme Clinic"
    - "Reporter Clinic.xlsx"    → "Reporter Clinic"
    - None                      → "Customer"
    """
    if not filename:
        return default

    name = _REPORT_EXTENSION.sub("", filename)
    # "Acme REPORT (2)" carries both suffixes
    while True:
        stripped = _REPORT_SUFFIX.sub("", name)
        if stripped == name:
            break
        name = stripped
    name = name.strip()
    return name or default
