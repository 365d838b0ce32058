"""Batch sinks: storage (database) and export (CSV)."""

from tapgen_collector.sinks.base import BatchSink
from tapgen_collector.sinks.csv_export import CsvExportSink
from tapgen_collector.sinks.database import DatabaseSink

__all__ = ["BatchSink", "CsvExportSink", "DatabaseSink"]
