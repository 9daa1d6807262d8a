"""
Custom exceptions for the dump exporter.
Anything raised from this hierarchy aborts the run.
"""

class PipelineError(Exception):
    """Base class for all pipeline exceptions."""
    pass


class ConfigurationError(PipelineError):
    """Raised when there's an error with the pipeline configuration."""
    pass


class DumpSourceError(PipelineError):
    """Raised when the dump file cannot be opened or read."""
    pass


class RecordFormatError(DumpSourceError):
    """Raised when a dump row is malformed (field count, encoding)."""

    def __init__(self, message: str, line_number: int = None):
        super().__init__(message)
        self.line_number = line_number


class IndexStorageError(PipelineError):
    """Raised when the on-disk author index fails (not for a missing key)."""
    pass


class IndexStateError(IndexStorageError):
    """Raised when the author index is used out of order."""
    pass


class OutputError(PipelineError):
    """Raised when writing or flushing the output stream fails."""
    pass
