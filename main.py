"""
Main module for the Open Library dump exporter.
Provides both CLI and programmatic interfaces.

Usage:
    python main.py ol_dump_latest.txt.gz > export.ndjson
"""

import sys
import time
import argparse
from typing import BinaryIO, Dict, Optional

from ol_export.logging import configure_logging, get_logger
from ol_export.config import (
    INDEX_DIR,
    LOG_FILE,
    LOG_LEVEL,
    METRICS_PORT,
    OUTPUT_BUFFER_SIZE,
    PROGRESS_INTERVAL,
    validate_config,
)
from ol_export.constants import (
    MSG_EXPORT_AUTHORS,
    MSG_EXPORT_BOOKS,
    MSG_EXTRACT_AUTHORS,
    PHASE_AUTHORS,
    PHASE_EDITIONS,
    PHASE_INDEX,
)
from ol_export.exceptions import PipelineError
from ol_export.extract import read_dump
from ol_export.index import AuthorIndex
from ol_export.load import NdjsonSink
from ol_export.metrics import record_error, record_pipeline_run, start_metrics_server, time_phase
from ol_export.models import PassStats
from ol_export.transform import build_author_index, iter_authors, iter_books
from ol_export.utils import ProgressReporter, validate_dump_path

logger = get_logger(__name__)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="ol-export",
        description="Export an Open Library dump as ndJSON book editions and authors",
    )

    parser.add_argument("dump_path", help="Path to the dump file, e.g. ol_dump_latest.txt.gz")
    parser.add_argument("--index-dir", default=INDEX_DIR, help="Directory for the temporary author index")
    parser.add_argument("--lenient-rows", action="store_true",
                        help="Skip rows with the wrong field count instead of aborting")
    parser.add_argument("--metrics-port", type=int, default=METRICS_PORT,
                        help="Port for metrics server (0 to disable)")
    parser.add_argument("--log-file", default=LOG_FILE, help="Also write JSON logs to this file")
    parser.add_argument("--log-level", default=LOG_LEVEL.upper(),
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Set log level")

    return parser.parse_args(argv)


@time_phase(PHASE_INDEX)
def index_stage(dump_path: str, index: AuthorIndex, lenient_rows: bool = False) -> PassStats:
    """
    First pass: fill the author index and commit it.

    Args:
        dump_path: Path to the dump file
        index: Open author index
        lenient_rows: Whether malformed rows are skipped

    Returns:
        Counts for the pass
    """
    logger.info(MSG_EXTRACT_AUTHORS, dump_path=dump_path)
    with read_dump(dump_path, lenient_rows=lenient_rows, phase=PHASE_INDEX) as reader:
        stats = build_author_index(reader, index, progress_interval=PROGRESS_INTERVAL)
    logger.info("Author index committed", authors=stats.kept, skipped=stats.skipped)
    return stats


@time_phase(PHASE_EDITIONS)
def editions_stage(
    dump_path: str,
    index: AuthorIndex,
    sink: NdjsonSink,
    lenient_rows: bool = False,
) -> PassStats:
    """
    Second pass: stream every edition as a book record.

    Args:
        dump_path: Path to the dump file
        index: Committed author index
        sink: Output sink
        lenient_rows: Whether malformed rows are skipped

    Returns:
        Counts for the pass
    """
    logger.info(MSG_EXPORT_BOOKS)
    stats = PassStats()
    with read_dump(dump_path, lenient_rows=lenient_rows, phase=PHASE_EDITIONS) as reader:
        sink.write_all(iter_books(reader, index, stats, progress_interval=PROGRESS_INTERVAL))
    return stats


@time_phase(PHASE_AUTHORS)
def authors_stage(index: AuthorIndex, sink: NdjsonSink) -> PassStats:
    """Final phase: drain the index as author records."""
    logger.info(MSG_EXPORT_AUTHORS)
    stats = PassStats()
    sink.write_all(iter_authors(index, stats))
    ProgressReporter(PHASE_AUTHORS).summary(stats)
    return stats


def run_export(
    dump_path: str,
    output: BinaryIO,
    index_dir: Optional[str] = None,
    lenient_rows: bool = False,
    buffer_size: int = OUTPUT_BUFFER_SIZE,
) -> Dict[str, PassStats]:
    """
    Run the whole export: index authors, export editions, export authors.

    The author index and its temporary directory only live for the
    duration of this call.

    Args:
        dump_path: Path to the dump file
        output: Binary stream receiving the ndJSON lines
        index_dir: Parent directory for the temporary index
        lenient_rows: Whether malformed rows are skipped
        buffer_size: Output buffer size in bytes

    Returns:
        Per-phase record counts
    """
    validate_dump_path(dump_path)
    sink = NdjsonSink(output, buffer_size=buffer_size)

    with AuthorIndex(index_dir) as index:
        stats = {PHASE_INDEX: index_stage(dump_path, index, lenient_rows)}
        stats[PHASE_EDITIONS] = editions_stage(dump_path, index, sink, lenient_rows)
        stats[PHASE_AUTHORS] = authors_stage(index, sink)

    sink.flush()
    return stats


def main(argv=None):
    """Main entry point for CLI."""
    args = parse_args(argv)
    configure_logging(console_level=args.log_level, log_file=args.log_file)

    start_time = time.time()
    try:
        validate_config()
        if args.metrics_port > 0:
            if start_metrics_server(args.metrics_port):
                logger.info("Metrics server started", port=args.metrics_port)
            else:
                logger.warning("Failed to start metrics server")

        stats = run_export(
            args.dump_path,
            sys.stdout.buffer,
            index_dir=args.index_dir,
            lenient_rows=args.lenient_rows,
        )
    except (PipelineError, OSError) as e:
        logger.error("Export failed", error=str(e), error_type=type(e).__name__)
        record_error(type(e).__name__)
        record_pipeline_run("failure")
        sys.exit(1)

    record_pipeline_run("success")
    logger.info(
        "Export completed",
        books=stats[PHASE_EDITIONS].kept,
        authors=stats[PHASE_AUTHORS].kept,
        processing_time=f"{time.time() - start_time:.2f}s",
    )


if __name__ == "__main__":
    main()
