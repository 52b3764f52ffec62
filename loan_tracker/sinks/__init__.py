"""Output sinks for exporting loan records."""

from loan_tracker.sinks.console import ConsoleSink
from loan_tracker.sinks.json_file import JsonFileSink

__all__ = ["ConsoleSink", "JsonFileSink"]
