"""
Per-town aggregation (observed vs expected JIA cases) and the flat text report.
"""
from .aggregate import summarize, summarize_all
from .export import REPORT_FILENAME, FileSink, display_line, export, write_report

__all__ = ["summarize", "summarize_all", "REPORT_FILENAME", "FileSink", "display_line", "export", "write_report"]
