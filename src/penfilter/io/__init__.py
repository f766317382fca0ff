"""Persistence helpers for report logs."""

from penfilter.io.reports import (
    ReportLogError,
    TimedReport,
    decode_report,
    encode_report,
    iter_reports,
    write_reports,
)

__all__ = [
    "ReportLogError",
    "TimedReport",
    "decode_report",
    "encode_report",
    "iter_reports",
    "write_reports",
]
