"""JSON file sink for notifications and collection exports."""

import json
import logging
from pathlib import Path
from typing import Any

from econsim.exceptions import SinkError
from econsim.models import Event
from econsim.serialization import to_dict

logger = logging.getLogger(__name__)


class JsonFileSink:
    """Append notifications to JSON Lines files and export record batches."""

    def __init__(self, output_dir: str | Path, pretty: bool = False) -> None:
        """Initialize JSON file sink.

        Parameters
        ----------
        output_dir : str | Path
            Directory to write files into.
        pretty : bool
            Pretty-print batch exports.
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.pretty = pretty
        self._counts: dict[str, int] = {}

    def publish(self, event: Event) -> None:
        """Append an event to ``<entity>_events.jsonl`` (entity from the event type)."""
        entity = event.event_type.split(".")[0]
        file_path = self.output_dir / f"{entity}_events.jsonl"
        try:
            with open(file_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(to_dict(event), ensure_ascii=False, default=str) + "\n")
        except OSError as exc:
            raise SinkError(f"Cannot append to {file_path}: {exc}") from exc
        self._counts[event.event_type] = self._counts.get(event.event_type, 0) + 1

    def write_batch(self, entity_type: str, records: list[Any]) -> None:
        """Write a batch of records to ``<entity_type>.json``."""
        file_path = self.output_dir / f"{entity_type}.json"

        data = [to_dict(record) for record in records]

        try:
            with open(file_path, "w", encoding="utf-8") as f:
                if self.pretty:
                    json.dump(data, f, indent=2, ensure_ascii=False, default=str)
                else:
                    json.dump(data, f, ensure_ascii=False, default=str)
        except OSError as exc:
            raise SinkError(f"Cannot write {file_path}: {exc}") from exc

        self._counts[entity_type] = len(records)

    def close(self) -> None:
        """Log summary."""
        logger.info("JSON files written to: %s", self.output_dir)
        for name, count in self._counts.items():
            logger.info("  %s: %d", name, count)
