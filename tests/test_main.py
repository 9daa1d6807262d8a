"""
End-to-end tests for the exporter CLI and run_export.
"""

import io
import json

import pytest

from dump_helpers import dump_line
from main import main, run_export
from ol_export.constants import PHASE_AUTHORS, PHASE_EDITIONS, PHASE_INDEX
from ol_export.exceptions import DumpSourceError, IndexStorageError, RecordFormatError
from ol_export.index import AuthorIndex


def export_lines(path, **kwargs):
    out = io.BytesIO()
    stats = run_export(str(path), out, **kwargs)
    return out.getvalue().decode("utf-8").splitlines(), stats


def test_single_author_single_edition(write_dump, tmp_path):
    path = write_dump([
        dump_line("/type/author", "/authors/OL1A", {"name": "Jane Doe"}),
        dump_line("/type/edition", "/books/OL1M", {
            "title": "Book",
            "authors": [{"key": "/authors/OL1A"}],
            "publish_date": "1999",
        }),
    ])

    lines, _ = export_lines(path, index_dir=str(tmp_path))

    assert lines == [
        '{"type":"book","id":"OL1M","name":"Book","authors":["Jane Doe"],"publish_year":1999}',
        '{"type":"author","id":"OL1A","name":"Jane Doe"}',
    ]


def test_books_come_before_authors_even_when_authors_follow(write_dump, tmp_path):
    """Authors listed after the edition in the file still resolve."""
    path = write_dump([
        dump_line("/type/edition", "/books/OL1M", {"title": "Book", "authors": [{"key": "/authors/OL2A"}]}),
        dump_line("/type/author", "/authors/OL2A", {"name": "Late Author"}),
        dump_line("/type/author", "/authors/OL1A", {"name": "Early Author"}),
    ], name="dump.txt.gz")

    lines, stats = export_lines(path, index_dir=str(tmp_path))
    objects = [json.loads(line) for line in lines]

    assert objects[0] == {"type": "book", "id": "OL1M", "name": "Book", "authors": ["Late Author"]}
    assert [o["id"] for o in objects[1:]] == ["OL1A", "OL2A"]
    assert stats[PHASE_INDEX].kept == 2
    assert stats[PHASE_EDITIONS].kept == 1
    assert stats[PHASE_AUTHORS].kept == 2


def test_author_output_matches_deduplicated_input(write_dump, tmp_path):
    path = write_dump([
        dump_line("/type/author", "/authors/OL3A", {"name": "C"}),
        dump_line("/type/author", "/authors/OL1A", {"name": "A"}),
        dump_line("/type/author", "/authors/OL3A", {"name": "C2"}),
        dump_line("/type/author", "/authors/OL4A", "{bad json"),
        dump_line("/type/work", "/works/OL1W", {"title": "W"}),
    ])

    lines, _ = export_lines(path, index_dir=str(tmp_path))

    assert [json.loads(line) for line in lines] == [
        {"type": "author", "id": "OL1A", "name": "A"},
        {"type": "author", "id": "OL3A", "name": "C2"},
    ]


def test_malformed_row_aborts_without_output(write_dump, tmp_path):
    path = write_dump([
        dump_line("/type/author", "/authors/OL1A", {"name": "A"}),
        "too\tfew\tfields",
    ])
    out = io.BytesIO()

    with pytest.raises(RecordFormatError):
        run_export(str(path), out, index_dir=str(tmp_path))

    assert out.getvalue() == b""


def test_malformed_row_skipped_when_lenient(write_dump, tmp_path):
    path = write_dump([
        dump_line("/type/author", "/authors/OL1A", {"name": "A"}),
        "too\tfew\tfields",
    ])

    lines, _ = export_lines(path, index_dir=str(tmp_path), lenient_rows=True)

    assert lines == ['{"type":"author","id":"OL1A","name":"A"}']


def test_index_is_removed_after_run(write_dump, tmp_path):
    index_dir = tmp_path / "index"
    index_dir.mkdir()
    path = write_dump([dump_line("/type/author", "/authors/OL1A", {"name": "A"})])

    export_lines(path, index_dir=str(index_dir))

    assert list(index_dir.iterdir()) == []


def test_missing_dump_raises(tmp_path):
    with pytest.raises(DumpSourceError):
        run_export(str(tmp_path / "missing.txt.gz"), io.BytesIO())


def test_cli_without_arguments_is_a_usage_error(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main([])

    assert exc_info.value.code == 2
    assert "dump_path" in capsys.readouterr().err


def test_cli_missing_file_exits_non_zero(tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        main([str(tmp_path / "missing.txt"), "--index-dir", str(tmp_path)])

    assert exc_info.value.code == 1


def test_cli_invalid_setting_exits_non_zero(write_dump, tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("OL_EXPORT_INDEX_BATCH_SIZE", "abc")
    path = write_dump([dump_line("/type/author", "/authors/OL1A", {"name": "A"})])

    with pytest.raises(SystemExit) as exc_info:
        main([str(path), "--index-dir", str(tmp_path)])

    assert exc_info.value.code == 1
    err = capsys.readouterr().err
    assert "ConfigurationError" in err
    assert "OL_EXPORT_INDEX_BATCH_SIZE" in err


def test_index_lookup_failure_aborts_run(write_dump, tmp_path, monkeypatch):
    def broken_get(self, author_id):
        raise IndexStorageError("disk I/O error")

    monkeypatch.setattr(AuthorIndex, "get", broken_get)
    path = write_dump([
        dump_line("/type/author", "/authors/OL1A", {"name": "A"}),
        dump_line("/type/edition", "/books/OL1M", {"title": "Book", "authors": [{"key": "/authors/OL1A"}]}),
    ])
    out = io.BytesIO()

    with pytest.raises(IndexStorageError):
        run_export(str(path), out, index_dir=str(tmp_path))

    assert out.getvalue() == b""
