"""
NDJSON output.

Each record is written as one compact JSON line and flushed right away so
downstream tools (jq, grep, head) see results as they arrive.
"""

from __future__ import annotations

import json
from typing import Any, BinaryIO

from ddog.errors import IOFailure, SerializationError


class NdjsonWriter:
    """Writes records as newline-delimited JSON to a binary stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream
        self.count = 0

    def write(self, record: Any) -> None:
        """
        Serialize and write a single record followed by a newline.

        Raises:
            SerializationError: If the record cannot be encoded as JSON
            IOFailure: If the stream is closed or the reader went away
        """
        try:
            line = json.dumps(record, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to encode record: {e}") from e

        try:
            self.stream.write(line.encode("utf-8") + b"\n")
            self.stream.flush()
        except BrokenPipeError as e:
            raise IOFailure("Output closed by reader (broken pipe)") from e
        except (OSError, ValueError) as e:
            raise IOFailure(f"Failed to write output: {e}") from e

        self.count += 1
