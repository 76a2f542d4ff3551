"""
Spreadsheet parsers module.
"""

from parsers.usage_report_parser import (
    ColumnMap,
    RawRow,
    UsageReport,
    find_header_row,
    resolve_columns,
    parse_usage_rows,
    parse_usage_report,
    read_report_rows,
)

__all__ = [
    "ColumnMap",
    "RawRow",
    "UsageReport",
    "find_header_row",
    "resolve_columns",
    "parse_usage_rows",
    "parse_usage_report",
    "read_report_rows",
]
