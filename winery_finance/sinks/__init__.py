"""Output sinks for exporting finance records."""

from winery_finance.sinks.console import ConsoleSink
from winery_finance.sinks.json_file import JsonFileSink
from winery_finance.sinks.kafka import KafkaSink

__all__ = ["ConsoleSink", "JsonFileSink", "KafkaSink"]
