from __future__ import annotations

from typing import Any, Iterable

import numpy as np

QUARTILE_LEVELS = {"q1": 0.25, "q2": 0.5, "q3": 0.75}


def interpolated_quantile(sorted_values: np.ndarray, q: float) -> float:
    """Linear interpolation between ranks, rank = q * (n - 1)."""

    n = sorted_values.size
    rank = q * (n - 1)
    lower = int(np.floor(rank))
    upper = min(lower + 1, n - 1)
    weight = rank - lower
    return float(sorted_values[lower] + (sorted_values[upper] - sorted_values[lower]) * weight)


def describe(values: Iterable[float]) -> dict[str, Any]:
    arr = np.asarray(list(values), dtype=float)
    if arr.size == 0:
        return {
            "count": 0,
            "mean": None,
            "std": None,
            "min": None,
            "max": None,
            "quartiles": {key: None for key in QUARTILE_LEVELS},
        }
    mean = float(arr.sum() / arr.size)
    std = float(np.sqrt(np.sum((arr - mean) ** 2) / arr.size))
    ordered = np.sort(arr)
    return {
        "count": int(arr.size),
        "mean": mean,
        "std": std,
        "min": float(ordered[0]),
        "max": float(ordered[-1]),
        "quartiles": {
            key: interpolated_quantile(ordered, level) for key, level in QUARTILE_LEVELS.items()
        },
    }
