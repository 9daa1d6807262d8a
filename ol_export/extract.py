"""
Extract module for the dump exporter.
Opens the (possibly compressed) dump and yields its tab-delimited rows.
"""

import bz2
import csv
import gzip
import io
import logging
import lzma
import zlib
from contextlib import contextmanager
from typing import BinaryIO, Iterator, List, Optional

from .config import FIELD_SIZE_LIMIT
from .constants import BZIP2_SUFFIXES, DELIMITER, GZIP_SUFFIXES, JSON_FIELD, LZMA_SUFFIXES
from .exceptions import DumpSourceError, RecordFormatError
from .metrics import record_skipped

logger = logging.getLogger(__name__)

# Errors a decompressor can raise while reading a corrupt or truncated file
STREAM_ERRORS = (OSError, EOFError, zlib.error, lzma.LZMAError)


def open_dump(dump_path: str) -> BinaryIO:
    """
    Open the dump as a byte stream, decompressing when the suffix says so.

    Every call opens an independent stream, so the same path can be read
    once per pass.

    Args:
        dump_path: Path to the dump file

    Returns:
        A readable binary stream

    Raises:
        DumpSourceError: If the file cannot be opened
    """
    path = str(dump_path)
    try:
        if path.endswith(GZIP_SUFFIXES):
            logger.debug(f"Opening {path} as gzip")
            return gzip.open(path, "rb")
        if path.endswith(BZIP2_SUFFIXES):
            logger.debug(f"Opening {path} as bzip2")
            return bz2.open(path, "rb")
        if path.endswith(LZMA_SUFFIXES):
            logger.debug(f"Opening {path} as xz")
            return lzma.open(path, "rb")
        return open(path, "rb")
    except OSError as e:
        raise DumpSourceError(f"while opening {path!r}: {e}") from e


class DumpReader:
    """
    Stream reader for tab-delimited dump rows.

    The first line is a header: it is consumed, never used for lookups, and
    only fixes the number of fields every following row must have. Rows
    are yielded as lists of strings, fields are positional. Rows too
    short to carry a JSON payload are malformed as well.
    """

    def __init__(
        self,
        stream: BinaryIO,
        lenient_rows: bool = False,
        phase: str = "dump",
        field_size_limit: int = FIELD_SIZE_LIMIT,
        min_fields: int = JSON_FIELD + 1,
    ):
        self.stream = stream
        self.lenient_rows = lenient_rows
        self.phase = phase
        self.min_fields = min_fields
        self.header: Optional[List[str]] = None
        self.bad_rows = 0
        csv.field_size_limit(field_size_limit)

    def __iter__(self) -> Iterator[List[str]]:
        return self.records()

    def records(self) -> Iterator[List[str]]:
        """
        Yield one list of fields per data row.

        Raises:
            RecordFormatError: On a field-count mismatch (unless lenient) or invalid UTF-8
            DumpSourceError: If the underlying stream fails
        """
        text = io.TextIOWrapper(self.stream, encoding="utf-8", errors="strict", newline="")
        reader = csv.reader(text, delimiter=DELIMITER, quoting=csv.QUOTE_NONE)
        try:
            self.header = next(reader, None)
            if self.header is None:
                logger.warning("Dump is empty, no header row found")
                return

            for row in reader:
                if not row:
                    continue
                if len(row) != len(self.header) or len(row) < self.min_fields:
                    if not self.lenient_rows:
                        raise RecordFormatError(
                            f"found record with {len(row)} fields on line {reader.line_num}, "
                            f"expected {max(len(self.header), self.min_fields)}",
                            line_number=reader.line_num,
                        )
                    self.bad_rows += 1
                    record_skipped(self.phase, "bad_row")
                    logger.debug(f"Skipping line {reader.line_num}: {len(row)} fields")
                    continue
                yield row
        except UnicodeDecodeError as e:
            raise RecordFormatError(
                f"invalid UTF-8 after line {reader.line_num}: {e}",
                line_number=reader.line_num,
            ) from e
        except csv.Error as e:
            raise RecordFormatError(
                f"unparseable row on line {reader.line_num}: {e}",
                line_number=reader.line_num,
            ) from e
        except STREAM_ERRORS as e:
            raise DumpSourceError(f"while reading the dump: {e}") from e


@contextmanager
def read_dump(dump_path: str, lenient_rows: bool = False, phase: str = "dump"):
    """
    Open the dump and provide a DumpReader over it; the file is closed on exit.

    Usage:
        with read_dump(path) as reader:
            for record in reader:
                ...
    """
    stream = open_dump(dump_path)
    try:
        yield DumpReader(stream, lenient_rows=lenient_rows, phase=phase)
    finally:
        stream.close()
