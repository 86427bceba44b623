from __future__ import annotations

from typing import Any, Iterable

import numpy as np


def _format_edge(value: float, precision: int) -> str:
    text = f"{value:.{precision}f}"
    # Avoid "-0.00" labels for values that round to zero.
    if text.lstrip("-").strip("0.") == "":
        text = text.lstrip("-")
    return text


def build_histogram(values: Iterable[float], bins: int = 10, precision: int = 2) -> list[dict[str, Any]]:
    """Equal-width bins over [min, max]; the last bin is closed on the right."""

    if bins < 1:
        raise ValueError("bins must be at least 1")
    arr = np.asarray(list(values), dtype=float)
    if arr.size == 0:
        return []
    lo = float(arr.min())
    hi = float(arr.max())
    total = int(arr.size)

    if lo == hi:
        return [
            {
                "bin": f"{_format_edge(lo, precision)}–{_format_edge(hi, precision)}",
                "lower": lo,
                "upper": hi,
                "count": total,
                "frequency": 100.0,
            }
        ]

    width = (hi - lo) / bins
    # Values sitting on an edge belong to the bin that edge opens.
    positions = np.floor((arr - lo) / width + 1e-9).astype(int)
    positions = np.clip(positions, 0, bins - 1)
    counts = np.bincount(positions, minlength=bins)

    result = []
    for k in range(bins):
        lower = lo + k * width
        upper = hi if k == bins - 1 else lo + (k + 1) * width
        count = int(counts[k])
        result.append(
            {
                "bin": f"{_format_edge(lower, precision)}–{_format_edge(upper, precision)}",
                "lower": float(lower),
                "upper": float(upper),
                "count": count,
                "frequency": round(100.0 * count / total, 2),
            }
        )
    return result
