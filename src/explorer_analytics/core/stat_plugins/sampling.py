from __future__ import annotations

from typing import Any, Callable, Sequence, TypeVar

import numpy as np

from explorer_analytics.core.types import PerformanceMetrics, SamplingInfo
from explorer_analytics.core.utils import stable_hash

T = TypeVar("T")

SAMPLING_METHODS = ("uniform", "systematic", "stratified", "peak_preserving", "lttb")
# Methods that need a numeric value per point.
_VALUE_METHODS = {"peak_preserving", "lttb"}


def sample_series(
    points: Sequence[T],
    max_points: int,
    method: str = "uniform",
    value_of: Callable[[T], float] | None = None,
    seed: int = 1337,
) -> tuple[list[T], SamplingInfo]:
    """Order-preserving, deterministic downsampling for chart payloads.

    First and last points are always kept. When the series already fits the
    budget it is returned unchanged with ratio 1.
    """

    if method not in SAMPLING_METHODS:
        raise ValueError(f"Unknown sampling method: {method}")
    if max_points < 2:
        raise ValueError("max_points must be at least 2")
    n = len(points)
    if n <= max_points:
        return list(points), SamplingInfo(1.0, "none", n, n)

    values: np.ndarray | None = None
    if method in _VALUE_METHODS:
        values = _point_values(points, value_of)
        if values is None:
            method = "uniform"

    if method == "systematic":
        idx = _systematic_indices(n, max_points, seed)
    elif method == "stratified":
        idx = _stratified_indices(n, max_points)
    elif method == "peak_preserving":
        idx = _peak_preserving_indices(values, max_points)
    elif method == "lttb":
        idx = _lttb_indices(values, max_points)
    else:
        idx = uniform_indices(n, max_points)

    sampled = [points[int(i)] for i in idx]
    return sampled, SamplingInfo(len(sampled) / n, method, n, len(sampled))


def uniform_indices(n: int, limit: int) -> np.ndarray:
    if limit <= 0 or n <= limit:
        return np.arange(n)
    return np.floor(np.linspace(0, n - 1, num=limit) + 0.5).astype(int)


def _systematic_indices(n: int, limit: int, seed: int) -> np.ndarray:
    step = n / limit
    offset = (stable_hash(f"systematic:{seed}") % 1000) / 1000.0 * step
    idx = np.floor(offset + np.arange(limit) * step).astype(int)
    idx[0] = 0
    idx[-1] = n - 1
    return idx


def _stratified_indices(n: int, limit: int) -> np.ndarray:
    inner = limit - 2
    if inner <= 0:
        return np.array([0, n - 1])
    bounds = 1 + np.floor(np.arange(inner + 1) * (n - 2) / inner).astype(int)
    mids = (bounds[:-1] + bounds[1:]) // 2
    return np.concatenate(([0], mids, [n - 1]))


def _peak_preserving_indices(values: np.ndarray, limit: int) -> np.ndarray:
    n = values.size
    prev, curr, nxt = values[:-2], values[1:-1], values[2:]
    extrema = np.where(((curr > prev) & (curr > nxt)) | ((curr < prev) & (curr < nxt)))[0] + 1
    prominence = np.abs(values[extrema] - (values[extrema - 1] + values[extrema + 1]) / 2.0)
    # Most prominent first; ties resolve to the earlier index.
    ranked = extrema[np.lexsort((extrema, -prominence))]

    selected = {0, n - 1}
    for index in ranked:
        if len(selected) >= limit:
            break
        selected.add(int(index))
    if len(selected) < limit:
        for index in uniform_indices(n, limit):
            if len(selected) >= limit:
                break
            selected.add(int(index))
    if len(selected) < limit:
        for index in range(n):
            if len(selected) >= limit:
                break
            selected.add(index)
    return np.asarray(sorted(selected), dtype=int)


def _lttb_indices(values: np.ndarray, limit: int) -> np.ndarray:
    """Largest-Triangle-Three-Buckets over (position, value)."""

    n = values.size
    if limit < 3:
        return np.array([0, n - 1])
    xs = np.arange(n, dtype=float)
    every = (n - 2) / (limit - 2)
    chosen = [0]
    a = 0
    for bucket in range(limit - 2):
        start = int(np.floor(bucket * every)) + 1
        end = int(np.floor((bucket + 1) * every)) + 1
        next_start = end
        next_end = min(int(np.floor((bucket + 2) * every)) + 1, n)
        if next_start >= next_end:
            avg_x, avg_y = xs[n - 1], values[n - 1]
        else:
            avg_x = float(np.mean(xs[next_start:next_end]))
            avg_y = float(np.mean(values[next_start:next_end]))
        window_x = xs[start:end]
        window_y = values[start:end]
        area = np.abs(
            (xs[a] - avg_x) * (window_y - values[a]) - (xs[a] - window_x) * (avg_y - values[a])
        )
        a = start + int(np.argmax(area))
        chosen.append(a)
    chosen.append(n - 1)
    return np.asarray(chosen, dtype=int)


def _point_values(points: Sequence[Any], value_of: Callable[[Any], float] | None) -> np.ndarray | None:
    if value_of is None:
        if not all(isinstance(p, (int, float)) and not isinstance(p, bool) for p in points):
            return None
        value_of = float
    try:
        values = np.asarray([float(value_of(p)) for p in points], dtype=float)
    except (TypeError, ValueError, KeyError):
        return None
    if not np.all(np.isfinite(values)):
        return None
    return values


def recommended_sampling(n: int) -> dict[str, Any]:
    if n <= 1000:
        return {"max_points": max(n, 2), "method": "uniform"}
    if n <= 5000:
        return {"max_points": 1000, "method": "uniform"}
    if n <= 20000:
        return {"max_points": 1500, "method": "systematic"}
    return {"max_points": 2000, "method": "peak_preserving"}


def performance_metrics(original_size: int, processed_size: int, elapsed_ms: float) -> PerformanceMetrics:
    reduced = original_size > processed_size
    ratio = (original_size - processed_size) / original_size * 100.0 if reduced else 0.0
    recommendations: list[str] = []
    if original_size > 10000:
        recommendations.append("Large input: chart points were sampled; statistics use every row.")
    if original_size > 50000:
        recommendations.append("Very large input: consider narrowing the filter before analysing.")
    return PerformanceMetrics(
        processing_time_ms=round(float(elapsed_ms), 2),
        original_size=int(original_size),
        processed_size=int(processed_size),
        extra={
            "isReduced": reduced,
            "reductionRatio": round(ratio, 1),
            "recommendations": recommendations,
        },
    )
