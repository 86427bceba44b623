from __future__ import annotations

from typing import Any, Callable, Sequence

import numpy as np

from explorer_analytics.core.errors import InvalidConfiguration

DEFAULT_PARAMS: dict[str, dict[str, Any]] = {
    "moving_average": {"short_window": 5, "long_window": 10, "threshold_multiplier": 0.5},
    "cusum": {"drift": 0.5, "threshold": 4.0},
    "ewma": {"lambda": 0.2, "control_limit": 3.0},
    "binary_segmentation": {"significance": 0.2, "min_segment_length": 5, "max_depth": 5},
}

ALGORITHMS = tuple(DEFAULT_PARAMS)


def _global_std(series: np.ndarray) -> float:
    if series.size == 0:
        return 0.0
    return float(np.sqrt(np.mean((series - series.mean()) ** 2)))


def _moving_average(series: np.ndarray, params: dict[str, Any]) -> tuple[list[tuple[int, float]], float]:
    short = int(params["short_window"])
    long = int(params["long_window"])
    if short < 1 or long <= short:
        raise InvalidConfiguration("moving_average needs 1 <= short_window < long_window")
    sigma = _global_std(series)
    threshold = float(params["threshold_multiplier"]) * sigma
    if series.size < long or sigma <= 0.0:
        return [], threshold

    cumsum = np.concatenate(([0.0], np.cumsum(series)))
    ends = np.arange(long - 1, series.size)
    short_mean = (cumsum[ends + 1] - cumsum[ends + 1 - short]) / short
    long_mean = (cumsum[ends + 1] - cumsum[ends + 1 - long]) / long
    deviation = np.abs(short_mean - long_mean)

    events: list[tuple[int, float]] = []
    run_peak = -1.0
    run_at = -1
    for offset, dev in enumerate(deviation):
        if dev > threshold:
            if dev > run_peak:
                run_peak = float(dev)
                run_at = int(ends[offset])
            continue
        if run_at >= 0:
            events.append((run_at, run_peak))
            run_peak, run_at = -1.0, -1
    if run_at >= 0:
        events.append((run_at, run_peak))

    points = []
    for peak_index, peak in events:
        # The trailing short window first covers the new level here.
        index = max(peak_index - short + 1, 0)
        points.append((index, min(1.0, peak / (2.0 * threshold))))
    return points, threshold


def _cusum(series: np.ndarray, params: dict[str, Any]) -> tuple[list[tuple[int, float]], float]:
    sigma = _global_std(series)
    drift = float(params["drift"]) * sigma
    h = float(params["threshold"]) * sigma
    if series.size < 3 or sigma <= 0.0:
        return [], h

    points: list[tuple[int, float]] = []
    start = 0
    total = float(series[0])
    s_pos = s_neg = 0.0
    # Index of the first sample after each accumulator was last zero.
    pos_from = neg_from = 1
    t = 1
    while t < series.size:
        baseline = total / (t - start)
        x = float(series[t])
        s_pos = max(0.0, s_pos + x - baseline - drift)
        s_neg = max(0.0, s_neg + baseline - x - drift)
        if s_pos == 0.0:
            pos_from = t + 1
        if s_neg == 0.0:
            neg_from = t + 1
        if s_pos > h or s_neg > h:
            change = pos_from if s_pos > h else neg_from
            before = series[start:change]
            after = series[change : t + 1]
            shift = abs(float(after.mean()) - float(before.mean())) if before.size else 0.0
            points.append((change, min(1.0, shift / (2.0 * sigma))))
            start = change
            total = float(series[start : t + 1].sum())
            s_pos = s_neg = 0.0
            pos_from = neg_from = t + 1
        else:
            total += x
        t += 1
    return points, h


def _ewma(series: np.ndarray, params: dict[str, Any]) -> tuple[list[tuple[int, float]], float]:
    lam = float(params["lambda"])
    if not 0.0 < lam <= 1.0:
        raise InvalidConfiguration("ewma lambda must be in (0, 1]")
    sigma = _global_std(series)
    limit = float(params["control_limit"]) * sigma * float(np.sqrt(lam / (2.0 - lam)))
    if series.size < 2 or sigma <= 0.0:
        return [], limit

    points: list[tuple[int, float]] = []
    level = float(series[0])
    for t in range(1, series.size):
        x = float(series[t])
        deviation = abs(x - level)
        if deviation > limit:
            points.append((t, min(1.0, deviation / (2.0 * limit))))
            level = x
        else:
            level = lam * x + (1.0 - lam) * level
    return points, limit


def _binary_segmentation(series: np.ndarray, params: dict[str, Any]) -> tuple[list[tuple[int, float]], float]:
    significance = float(params["significance"])
    min_size = max(1, int(params["min_segment_length"]))
    max_depth = int(params["max_depth"])
    n = series.size
    if n < 2 * min_size:
        return [], significance

    cumsum = np.concatenate(([0.0], np.cumsum(series)))
    cumsum2 = np.concatenate(([0.0], np.cumsum(series**2)))

    def _cost(start: int, end: int) -> float:
        length = end - start
        if length <= 0:
            return 0.0
        total = cumsum[end] - cumsum[start]
        total2 = cumsum2[end] - cumsum2[start]
        return max(0.0, float(total2 - total * total / length))

    # A split must remove a share of the whole-series cost, not just of its segment.
    total_cost = _cost(0, n)
    if total_cost <= 0.0:
        return [], significance

    points: list[tuple[int, float]] = []
    stack: list[tuple[int, int, int]] = [(0, n, 0)]
    while stack:
        start, end, depth = stack.pop()
        if depth >= max_depth or end - start < 2 * min_size:
            continue
        segment_cost = _cost(start, end)
        if segment_cost <= 0.0:
            continue
        best_gain = 0.0
        best_idx = None
        for idx in range(start + min_size, end - min_size + 1):
            gain = segment_cost - (_cost(start, idx) + _cost(idx, end))
            if gain > best_gain:
                best_gain = gain
                best_idx = idx
        if best_idx is None:
            continue
        if best_gain / total_cost < significance:
            continue
        points.append((best_idx, min(1.0, best_gain / segment_cost)))
        stack.append((best_idx, end, depth + 1))
        stack.append((start, best_idx, depth + 1))
    return points, significance


HANDLERS: dict[str, Callable[[np.ndarray, dict[str, Any]], tuple[list[tuple[int, float]], float]]] = {
    "moving_average": _moving_average,
    "cusum": _cusum,
    "ewma": _ewma,
    "binary_segmentation": _binary_segmentation,
}


def detect(
    series: Sequence[float],
    x_labels: Sequence[Any] | None = None,
    algorithm: str = "moving_average",
    params: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Run one change-point algorithm over an ordered numeric series.

    Points are reported in ascending index order, one per index. When
    ``x_labels`` is given each point also carries the label at its index.
    """

    handler = HANDLERS.get(algorithm)
    if handler is None:
        raise InvalidConfiguration(
            f"Unknown change-point algorithm: {algorithm!r} (expected one of {list(ALGORITHMS)})"
        )
    effective = {**DEFAULT_PARAMS[algorithm], **(params or {})}
    values = np.asarray(list(series), dtype=float)
    if x_labels is not None and len(x_labels) != values.size:
        raise ValueError("x_labels must align with the series")

    found, threshold = handler(values, effective)
    by_index: dict[int, float] = {}
    for index, confidence in found:
        by_index[index] = max(confidence, by_index.get(index, 0.0))

    change_points = []
    for index in sorted(by_index):
        point: dict[str, Any] = {
            "index": int(index),
            "value": float(values[index]),
            "confidence": float(by_index[index]),
        }
        if x_labels is not None:
            point["label"] = x_labels[index]
        change_points.append(point)

    confidences = [p["confidence"] for p in change_points]
    return {
        "changePoints": change_points,
        "statistics": {
            "algorithm": algorithm,
            "averageConfidence": float(np.mean(confidences)) if confidences else 0.0,
            "threshold": float(threshold),
            "globalStd": _global_std(values),
            "count": len(change_points),
        },
    }
