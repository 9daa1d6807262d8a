"""
Open Library dump exporter

A two-pass ETL pipeline that turns a bulk Open Library dump into
newline-delimited JSON streams of book editions and authors.
"""

__version__ = "0.1.0"
