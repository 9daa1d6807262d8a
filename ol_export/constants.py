"""
Constants describing the Open Library dump format.
These are not configuration: they are fixed by the dump layout itself.
"""

# Positional fields of a dump row
TYPE_FIELD = 0
KEY_FIELD = 1
JSON_FIELD = 4

# Record type tags and identifier prefixes
EDITION_TYPE = "/type/edition"
AUTHOR_PREFIX = "/authors/"
BOOK_PREFIX = "/books/"

# Field delimiter of the dump
DELIMITER = "\t"

# File suffixes that trigger transparent decompression
GZIP_SUFFIXES = (".gz",)
BZIP2_SUFFIXES = (".bz2",)
LZMA_SUFFIXES = (".xz",)

# Name of the table holding the author index
AUTHOR_TABLE = "authors_ids_names"

# Length of the year suffix in a free-text publish date
YEAR_SUFFIX_LENGTH = 4

# Progress messages written to the error stream
MSG_EXTRACT_AUTHORS = "Extracting the authors..."
MSG_EXPORT_BOOKS = "Exporting the books editions..."
MSG_EXPORT_AUTHORS = "Exporting the authors..."

# Phase labels used in logs and metrics
PHASE_INDEX = "authors_index"
PHASE_EDITIONS = "editions"
PHASE_AUTHORS = "authors"
