"""
Metrics collection module for the dump exporter.
Uses Prometheus metrics for tracking record counts and phase timings.
"""

import time
import logging
import contextlib
from typing import Optional, Dict, Callable
from functools import lru_cache, wraps

from prometheus_client import Counter, Histogram, Gauge, start_http_server

logger = logging.getLogger(__name__)

# Counters
PIPELINE_RUNS_TOTAL = Counter(
    'pipeline_runs_total',
    'Total number of exporter runs',
    ['status']
)

DUMP_RECORDS_TOTAL = Counter(
    'dump_records_total',
    'Total number of dump records read',
    ['phase']
)

DUMP_RECORDS_SKIPPED_TOTAL = Counter(
    'dump_records_skipped_total',
    'Total number of dump records skipped',
    ['phase', 'reason']
)

AUTHORS_INDEXED_TOTAL = Counter(
    'authors_indexed_total',
    'Total number of author upserts into the index'
)

BOOKS_EXPORTED_TOTAL = Counter(
    'books_exported_total',
    'Total number of book records written'
)

AUTHORS_EXPORTED_TOTAL = Counter(
    'authors_exported_total',
    'Total number of author records written'
)

ERRORS_TOTAL = Counter(
    'errors_total',
    'Total number of fatal errors',
    ['error_type']
)

# Histograms for timings
PHASE_TIME = Histogram(
    'phase_time_seconds',
    'Time spent in each pipeline phase',
    ['phase']
)

ACTIVE_PHASES = Gauge(
    'active_phases',
    'Number of pipeline phases currently running'
)


def start_metrics_server(port: int = 8001) -> bool:
    """
    Start the Prometheus metrics server.

    Args:
        port: The port to run the server on

    Returns:
        True if server started successfully, False otherwise
    """
    try:
        start_http_server(port)
        logger.info(f"Metrics server started on port {port}")
        return True
    except OSError as e:
        logger.error(f"Failed to start metrics server: {str(e)}")
        return False


def increment_counter(counter, labels: Optional[Dict[str, str]] = None, amount: int = 1) -> None:
    """
    Increment a Prometheus counter, with labels when given.

    Args:
        counter: The counter to increment
        labels: Optional labels to apply to the counter
        amount: Increment step
    """
    if labels:
        counter.labels(**labels).inc(amount)
    else:
        counter.inc(amount)


def record_error(error_type: str) -> None:
    """Record a fatal error in the metrics."""
    increment_counter(ERRORS_TOTAL, {"error_type": error_type})


def record_pipeline_run(status: str = "success") -> None:
    """Record an exporter run in the metrics."""
    increment_counter(PIPELINE_RUNS_TOTAL, {"status": status})


# Per-row counters; the labelled children are looked up once per label set
@lru_cache(maxsize=None)
def dump_records_counter(phase: str):
    return DUMP_RECORDS_TOTAL.labels(phase=phase)


@lru_cache(maxsize=None)
def skipped_records_counter(phase: str, reason: str):
    return DUMP_RECORDS_SKIPPED_TOTAL.labels(phase=phase, reason=reason)


def record_dump_record(phase: str) -> None:
    dump_records_counter(phase).inc()


def record_skipped(phase: str, reason: str) -> None:
    skipped_records_counter(phase, reason).inc()


def record_author_indexed() -> None:
    increment_counter(AUTHORS_INDEXED_TOTAL)


def record_book_exported() -> None:
    increment_counter(BOOKS_EXPORTED_TOTAL)


def record_author_exported() -> None:
    increment_counter(AUTHORS_EXPORTED_TOTAL)


def time_it(histogram, labels: Optional[Dict[str, str]] = None):
    """
    Decorator to measure and record the execution time of a function.

    Args:
        histogram: The Prometheus histogram to record the time in
        labels: Optional labels to apply to the histogram
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            with time_it_context(histogram, labels):
                return func(*args, **kwargs)
        return wrapper
    return decorator


@contextlib.contextmanager
def time_it_context(histogram, labels: Optional[Dict[str, str]] = None):
    """
    Context manager to measure and record the execution time of a block of code.

    Args:
        histogram: The Prometheus histogram to record the time in
        labels: Optional labels to apply to the histogram
    """
    ACTIVE_PHASES.inc()
    start_time = time.time()
    try:
        yield
    finally:
        execution_time = time.time() - start_time
        ACTIVE_PHASES.dec()
        if labels:
            histogram.labels(**labels).observe(execution_time)
        else:
            histogram.observe(execution_time)


def time_phase(phase: str):
    """Time one of the pipeline phases."""
    return time_it(PHASE_TIME, {"phase": phase})
