"""
Transform module for the dump exporter.

Pass 1 fills the author index from author rows, pass 2 turns edition rows
into book records resolved against the committed index, and the final
phase drains the index as author records.
"""

import logging
from typing import Iterable, Iterator, List, Optional, Tuple

from pydantic import ValidationError

from .constants import (
    AUTHOR_PREFIX,
    BOOK_PREFIX,
    EDITION_TYPE,
    JSON_FIELD,
    KEY_FIELD,
    PHASE_EDITIONS,
    PHASE_INDEX,
    TYPE_FIELD,
)
from .index import AuthorIndex
from .metrics import (
    record_author_exported,
    record_author_indexed,
    record_book_exported,
    record_dump_record,
    record_skipped,
)
from .models import AuthorPayload, AuthorRecord, BookRecord, EditionPayload, PassStats
from .utils import ProgressReporter, parse_publish_year, strip_prefix

logger = logging.getLogger(__name__)

Record = List[str]


def parse_author_record(record: Record) -> Optional[Tuple[str, str]]:
    """
    Return ``(author_id, name)`` for an author row, None for anything else.

    The row type is not checked: the ``/authors/`` prefix of the key is
    the filter. A payload that is not valid JSON or lacks a string name
    is skipped.
    """
    author_id = strip_prefix(record[KEY_FIELD], AUTHOR_PREFIX)
    if author_id is None:
        return None
    try:
        author = AuthorPayload.model_validate_json(record[JSON_FIELD])
    except ValidationError as e:
        logger.debug(f"Skipping author {author_id}: {e.error_count()} payload error(s)")
        return None
    return author_id, author.name


def _author_skip_reason(record: Record) -> str:
    if not record[KEY_FIELD].startswith(AUTHOR_PREFIX):
        return "not_author"
    return "invalid_payload"


def build_author_index(
    records: Iterable[Record],
    index: AuthorIndex,
    progress_interval: int = 0,
) -> PassStats:
    """
    Upsert every author row into the index, then commit it.

    Args:
        records: A full pass of dump rows
        index: An open, uncommitted author index
        progress_interval: Rows between progress log lines (0 disables)

    Returns:
        Counts for the pass
    """
    stats = PassStats()
    progress = ProgressReporter(PHASE_INDEX, progress_interval)

    for record in records:
        stats.processed += 1
        record_dump_record(PHASE_INDEX)
        author = parse_author_record(record)
        if author is None:
            stats.skipped += 1
            record_skipped(PHASE_INDEX, _author_skip_reason(record))
        else:
            index.put(*author)
            stats.kept += 1
            record_author_indexed()
        progress.report(stats)

    index.commit()
    progress.summary(stats)
    return stats


def resolve_authors(edition: EditionPayload, index: AuthorIndex) -> List[str]:
    """
    Resolve the edition's author references to display names, in listing order.

    References without the ``/authors/`` prefix or missing from the index
    are dropped. Storage failures propagate.
    """
    names = []
    for author_key in edition.authors or []:
        author_id = strip_prefix(author_key.key, AUTHOR_PREFIX)
        if author_id is None:
            continue
        name = index.get(author_id)
        if name is not None:
            names.append(name)
    return names


def goodreads_ids(edition: EditionPayload) -> List[str]:
    if edition.identifiers is None:
        return []
    return list(edition.identifiers.goodreads or [])


def transform_edition(record: Record, index: AuthorIndex) -> Optional[BookRecord]:
    """
    Build the book record for an edition row.

    Returns None when the row is not an edition, its key is not a
    ``/books/`` path, or its payload does not parse.
    """
    if record[TYPE_FIELD] != EDITION_TYPE:
        return None
    book_id = strip_prefix(record[KEY_FIELD], BOOK_PREFIX)
    if book_id is None:
        return None
    try:
        edition = EditionPayload.model_validate_json(record[JSON_FIELD])
    except ValidationError as e:
        logger.debug(f"Skipping edition {book_id}: {e.error_count()} payload error(s)")
        return None

    return BookRecord.build(
        id=book_id,
        name=edition.title,
        authors=resolve_authors(edition, index),
        publish_year=parse_publish_year(edition.publish_date),
        number_of_pages=edition.number_of_pages,
        subjects=list(edition.subjects or []),
        goodreads=goodreads_ids(edition),
    )


def _edition_skip_reason(record: Record) -> str:
    if record[TYPE_FIELD] != EDITION_TYPE or not record[KEY_FIELD].startswith(BOOK_PREFIX):
        return "not_edition"
    return "invalid_payload"


def iter_books(
    records: Iterable[Record],
    index: AuthorIndex,
    stats: Optional[PassStats] = None,
    progress_interval: int = 0,
) -> Iterator[BookRecord]:
    """
    Stream book records from a second pass over the dump.

    The index must already be committed; it is only read here.
    """
    stats = stats if stats is not None else PassStats()
    progress = ProgressReporter(PHASE_EDITIONS, progress_interval)

    for record in records:
        stats.processed += 1
        record_dump_record(PHASE_EDITIONS)
        book = transform_edition(record, index)
        if book is None:
            stats.skipped += 1
            record_skipped(PHASE_EDITIONS, _edition_skip_reason(record))
        else:
            stats.kept += 1
            record_book_exported()
            yield book
        progress.report(stats)

    progress.summary(stats)


def iter_authors(index: AuthorIndex, stats: Optional[PassStats] = None) -> Iterator[AuthorRecord]:
    """Yield one author record per index entry, in key order."""
    stats = stats if stats is not None else PassStats()
    for author_id, name in index.items():
        stats.processed += 1
        stats.kept += 1
        record_author_exported()
        yield AuthorRecord(id=author_id, name=name)
