from __future__ import annotations

import pytest

from explorer_analytics.core.utils import resolve_env_placeholders


def test_resolve_env_placeholders_nested(monkeypatch) -> None:
    monkeypatch.setenv("BUCKET_SIZE", "week")
    payload = {
        "a": "${ENV:BUCKET_SIZE}",
        "b": ["x", "${ENV:BUCKET_SIZE}"],
        "c": {"inner": "${ENV:BUCKET_SIZE}"},
    }
    resolved = resolve_env_placeholders(payload)
    assert resolved["a"] == "week"
    assert resolved["b"][1] == "week"
    assert resolved["c"]["inner"] == "week"


def test_resolve_env_placeholders_missing_raises(monkeypatch) -> None:
    monkeypatch.delenv("MISSING_SETTING", raising=False)
    with pytest.raises(ValueError):
        resolve_env_placeholders({"a": "${ENV:MISSING_SETTING}"})


def test_non_placeholder_strings_untouched() -> None:
    assert resolve_env_placeholders("prefix ${ENV:X}") == "prefix ${ENV:X}"
