"""
Tests for the output records and the ndJSON sink.
"""

import io
import json

import pytest

from ol_export.exceptions import OutputError
from ol_export.load import NdjsonSink
from ol_export.models import AuthorRecord, BookRecord, dump_output_line


def test_book_line_omits_empty_and_missing_fields():
    book = BookRecord.build(
        id="OL1M",
        name="Book",
        authors=[],
        publish_year=None,
        number_of_pages=None,
        subjects=[],
        goodreads=[],
    )

    assert dump_output_line(book) == b'{"type":"book","id":"OL1M","name":"Book"}\n'


def test_book_line_field_order():
    book = BookRecord.build(
        id="OL1M",
        name="Book",
        authors=["Jane Doe"],
        publish_year=1999,
        number_of_pages=10,
        subjects=["S"],
        goodreads=["1"],
    )

    line = dump_output_line(book)

    assert list(json.loads(line)) == [
        "type", "id", "name", "authors", "publish_year", "number_of_pages", "subjects", "goodreads",
    ]


def test_author_line():
    line = dump_output_line(AuthorRecord(id="OL1A", name="Jane Doe"))
    assert line == b'{"type":"author","id":"OL1A","name":"Jane Doe"}\n'


def test_non_ascii_is_written_as_utf8():
    line = dump_output_line(AuthorRecord(id="OL1A", name="Émile Zola"))
    assert "Émile".encode("utf-8") in line


def test_sink_buffers_until_flush():
    out = io.BytesIO()
    sink = NdjsonSink(out, buffer_size=1024)

    sink.write(AuthorRecord(id="OL1A", name="A"))
    assert out.getvalue() == b""

    sink.flush()
    assert out.getvalue() == b'{"type":"author","id":"OL1A","name":"A"}\n'


def test_sink_only_writes_whole_lines():
    out = io.BytesIO()
    sink = NdjsonSink(out, buffer_size=1)

    count = sink.write_all(AuthorRecord(id=f"OL{i}A", name="A") for i in range(3))

    assert count == 3
    assert out.getvalue().count(b"\n") == 3
    assert out.getvalue().endswith(b"\n")


class FailingStream(io.RawIOBase):
    def writable(self):
        return True

    def write(self, data):
        raise BrokenPipeError("closed")


def test_sink_write_failure_is_fatal():
    sink = NdjsonSink(FailingStream(), buffer_size=1)

    with pytest.raises(OutputError):
        sink.write(AuthorRecord(id="OL1A", name="A"))


def test_sink_context_flushes_on_success():
    out = io.BytesIO()
    with NdjsonSink(out) as sink:
        sink.write(AuthorRecord(id="OL1A", name="A"))

    assert out.getvalue().endswith(b"\n")


class FailingFlushStream:
    def __init__(self):
        self.data = b""

    def write(self, data):
        self.data += bytes(data)
        return len(data)

    def flush(self):
        raise OSError("No space left on device")


def test_sink_flush_failure_is_fatal():
    stream = FailingFlushStream()
    sink = NdjsonSink(stream)
    sink.write(AuthorRecord(id="OL1A", name="A"))

    with pytest.raises(OutputError):
        sink.flush()

    assert stream.data == b'{"type":"author","id":"OL1A","name":"A"}\n'
