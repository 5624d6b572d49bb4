"""Notification sinks for announcing committed engine changes."""

from econsim.sinks.base import NotificationSink
from econsim.sinks.console import ConsoleSink
from econsim.sinks.json_file import JsonFileSink
from econsim.sinks.kafka import KafkaSink, ProducerStats

__all__ = ["ConsoleSink", "JsonFileSink", "KafkaSink", "NotificationSink", "ProducerStats"]
