"""Tests for Settings validation."""

import pytest
from pydantic import ValidationError

from ragchat.config.settings import Settings


def _settings(**overrides):
    return Settings(_env_file=None, GOOGLE_API_KEY="test-key", **overrides)


def test_defaults():
    s = _settings()

    assert s.SIMILARITY_THRESHOLD == 0.5
    assert s.SEARCH_RESULTS_LIMIT == 3
    assert s.PORT == 3000
    assert s.GOOGLE_API_KEY.get_secret_value() == "test-key"
    assert "test-key" not in repr(s)


def test_api_key_required(monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


@pytest.mark.parametrize(
    "field, value",
    [
        ("SIMILARITY_THRESHOLD", 1.5),
        ("SEARCH_RESULTS_LIMIT", 0),
        ("LLM_TEMPERATURE", 3.0),
        ("LLM_TIMEOUT_SECONDS", 0),
        ("MAX_WORKERS", 64),
    ],
)
def test_out_of_range_rejected(field, value):
    with pytest.raises(ValidationError):
        _settings(**{field: value})
