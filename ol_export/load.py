"""
Load module for the dump exporter.
Writes output objects as newline-delimited JSON to a binary stream.
"""

import logging
from typing import BinaryIO, Iterable, Union

from .config import OUTPUT_BUFFER_SIZE
from .exceptions import OutputError
from .models import AuthorRecord, BookRecord, dump_output_line

logger = logging.getLogger(__name__)


class NdjsonSink:
    """
    Buffered ndJSON writer.

    Lines are serialized whole before they enter the buffer, and the buffer
    is only ever handed to the stream in full, so a reader never sees half
    a record.
    """

    def __init__(self, stream: BinaryIO, buffer_size: int = OUTPUT_BUFFER_SIZE):
        self.stream = stream
        self.buffer_size = max(1, buffer_size)
        self.lines_written = 0
        self._buffer = bytearray()

    def write(self, obj: Union[BookRecord, AuthorRecord]) -> None:
        self._buffer += dump_output_line(obj)
        self.lines_written += 1
        if len(self._buffer) >= self.buffer_size:
            self._drain()

    def write_all(self, objs: Iterable[Union[BookRecord, AuthorRecord]]) -> int:
        """Write every object; returns how many were written."""
        count = 0
        for obj in objs:
            self.write(obj)
            count += 1
        return count

    def flush(self) -> None:
        """Write out the buffer and flush the stream."""
        self._drain()
        try:
            self.stream.flush()
        except OSError as e:
            raise OutputError(f"Failed to flush the output stream: {e}") from e
        logger.debug(f"Flushed output ({self.lines_written} lines so far)")

    def __enter__(self) -> "NdjsonSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # Only flush on success; an aborted run does not complete its output
        if exc_type is None:
            self.flush()

    def _drain(self) -> None:
        if not self._buffer:
            return
        try:
            self.stream.write(bytes(self._buffer))
        except OSError as e:
            raise OutputError(f"Failed to write to the output stream: {e}") from e
        self._buffer.clear()
