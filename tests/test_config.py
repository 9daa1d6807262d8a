"""
Tests for environment-driven settings.
"""

import pytest

from ol_export.config import env_int, validate_config
from ol_export.exceptions import ConfigurationError, PipelineError


def test_env_int_uses_default_when_unset(monkeypatch):
    monkeypatch.delenv("OL_EXPORT_INDEX_BATCH_SIZE", raising=False)
    assert env_int("OL_EXPORT_INDEX_BATCH_SIZE", 10) == 10

    monkeypatch.setenv("OL_EXPORT_INDEX_BATCH_SIZE", "  ")
    assert env_int("OL_EXPORT_INDEX_BATCH_SIZE", 10) == 10


def test_env_int_reads_value(monkeypatch):
    monkeypatch.setenv("OL_EXPORT_INDEX_BATCH_SIZE", "500")
    assert env_int("OL_EXPORT_INDEX_BATCH_SIZE", 10) == 500


@pytest.mark.parametrize("raw", ["abc", "1.5", "-1"])
def test_env_int_rejects_bad_values(monkeypatch, raw):
    monkeypatch.setenv("OL_EXPORT_INDEX_BATCH_SIZE", raw)

    with pytest.raises(ConfigurationError, match="OL_EXPORT_INDEX_BATCH_SIZE"):
        env_int("OL_EXPORT_INDEX_BATCH_SIZE", 10)


def test_validate_config_names_the_bad_variable(monkeypatch):
    monkeypatch.setenv("OL_EXPORT_OUTPUT_BUFFER_SIZE", "lots")

    with pytest.raises(ConfigurationError) as exc_info:
        validate_config()

    assert "OL_EXPORT_OUTPUT_BUFFER_SIZE" in str(exc_info.value)
    assert isinstance(exc_info.value, PipelineError)
