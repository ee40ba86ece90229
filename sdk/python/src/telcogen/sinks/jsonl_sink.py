"""telcogen JSONL Publish Sink.

Appends each event as one JSON line to a local file, tagged with its topic
and routing key. Intended for development and offline inspection when no
broker is available.
"""

from __future__ import annotations

import json
import logging
import threading
from concurrent.futures import Future
from pathlib import Path

from telcogen.errors import PublishError
from telcogen.schema import TelcoEvent
from telcogen.sinks.base import PublishOutcome, PublishSink, completed, failed, serialize_event

logger = logging.getLogger(__name__)

# Output file size that triggers rotation (500MB)
_MAX_FILE_SIZE_BYTES = 500 * 1024 * 1024


def _validate_output_path(output_file: str | Path) -> Path:
    """Reject paths containing '..' components and resolve the rest."""
    if ".." in Path(output_file).parts:
        raise ValueError(f"Path traversal detected in output path: {output_file}")
    return Path(output_file).resolve()


class JsonlPublishSink(PublishSink):
    """Writes events to a JSON Lines file.

    Each line is ``{"topic": ..., "key": ..., "event": {...}}``. Writes are
    serialized under a lock; the line number doubles as the record offset.

    Args:
        output_file: Destination file; parent directories are created.
        max_file_size: Size in bytes above which the file is rotated to
            ``<name>.jsonl.old`` before the next write.
    """

    def __init__(self, output_file: str | Path, max_file_size: int = _MAX_FILE_SIZE_BYTES) -> None:
        self._path = _validate_output_path(output_file)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._max_file_size = max_file_size
        self._lock = threading.Lock()
        self._offset = 0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def records_written(self) -> int:
        with self._lock:
            return self._offset

    def publish(self, topic_key: str, routing_key: str, event: TelcoEvent) -> Future[PublishOutcome]:
        line = json.dumps(
            {"topic": topic_key, "key": routing_key, "event": serialize_event(event)},
            default=str,
        )
        try:
            with self._lock:
                self._rotate_if_needed()
                with open(self._path, "a", encoding="utf-8") as f:
                    f.write(line + "\n")
                offset = self._offset
                self._offset += 1
        except OSError as exc:
            logger.error("JSONL sink write to %s failed: %s", self._path, exc)
            return failed(PublishError(topic_key, routing_key, str(exc)))

        return completed(PublishOutcome(
            topic=topic_key,
            routing_key=routing_key,
            event_id=event.event_id,
            partition=0,
            offset=offset,
        ))

    def _rotate_if_needed(self) -> None:
        if self._path.exists() and self._path.stat().st_size > self._max_file_size:
            rotated = self._path.with_suffix(".jsonl.old")
            logger.warning(
                "JSONL sink file exceeds %d bytes, rotating to %s",
                self._max_file_size, rotated,
            )
            self._path.rename(rotated)
