from __future__ import annotations

from copy import deepcopy
from typing import Any

DEFAULT_COMMON_CONFIG: dict[str, Any] = {
    "seed": 1337,
    "time_budget_ms": None,
    # Statistics treat null/undefined as missing always; these toggles widen
    # the definition per analysis.
    "missing": {
        "include_zero": False,
        "include_empty": True,
    },
    "max_chart_points": 2000,
    "sampling_method": "uniform",
}


def merge_config(config: dict[str, Any] | None, *overrides: dict[str, Any] | None) -> dict[str, Any]:
    """Common defaults deep-merged with each layer in order; later layers win."""

    merged = deepcopy(DEFAULT_COMMON_CONFIG)
    for layer in (config, *overrides):
        if layer:
            _deep_merge(merged, deepcopy(layer))
    return merged


def _deep_merge(target: dict[str, Any], incoming: dict[str, Any]) -> None:
    for key, value in incoming.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_merge(target[key], value)
        else:
            target[key] = value
