from __future__ import annotations

from typing import Any, Sequence

import numpy as np
import pandas as pd

from explorer_analytics.core.types import DATE, INDEX_AXIS, NUMERIC, SamplingInfo

from .missingness import MissingPolicy, is_number
from .sampling import sample_series

BUCKETS = ("hour", "day", "week", "month")
X_KINDS = (DATE, NUMERIC, INDEX_AXIS)


def moving_average_window(n: int) -> int:
    return int(min(max(n // 10, 3), 50))


def _truncate(ts: pd.Timestamp, bucket: str) -> pd.Timestamp:
    if bucket == "hour":
        return ts.replace(minute=0, second=0, microsecond=0, nanosecond=0)
    if bucket == "day":
        return ts.normalize()
    if bucket == "week":
        return (ts - pd.Timedelta(days=ts.weekday())).normalize()
    return ts.normalize().replace(day=1)


def _label(ts: pd.Timestamp, bucket: str) -> str:
    if bucket == "hour":
        return ts.strftime("%Y-%m-%d %H:00:00")
    if bucket == "day":
        return ts.strftime("%Y-%m-%d")
    if bucket == "week":
        iso = ts.isocalendar()
        return f"{iso[0]:04d}-W{iso[1]:02d}"
    return ts.strftime("%Y-%m")


def _pairs(
    x_values: Sequence[Any] | None,
    y_values: Sequence[Any],
    x_kind: str,
    policy: MissingPolicy,
) -> list[tuple[Any, float]]:
    pairs: list[tuple[Any, float]] = []
    for position, y in enumerate(y_values):
        if policy.is_missing(y) or not is_number(y):
            continue
        if x_kind == INDEX_AXIS:
            pairs.append((position, float(y)))
            continue
        x = x_values[position]
        if x_kind == DATE:
            if isinstance(x, pd.Timestamp) and not pd.isna(x):
                # Buckets are computed on naive UTC wall time.
                if x.tzinfo is not None:
                    x = x.tz_convert("UTC").tz_localize(None)
                pairs.append((x, float(y)))
        elif not policy.is_missing(x) and is_number(x):
            pairs.append((float(x), float(y)))
    return pairs


def _trend(values: np.ndarray, stable_ratio: float) -> dict[str, Any]:
    n = values.size
    if n < 2:
        slope = 0.0
        intercept = float(values[0]) if n else 0.0
    else:
        xs = np.arange(n, dtype=float)
        x_mean = xs.mean()
        y_mean = values.mean()
        slope = float(np.sum((xs - x_mean) * (values - y_mean)) / np.sum((xs - x_mean) ** 2))
        intercept = float(y_mean - slope * x_mean)
    value_range = float(values.max() - values.min()) if n else 0.0
    if value_range <= 0.0 or abs(slope) * (n - 1) / value_range < stable_ratio:
        direction = "stable"
    else:
        direction = "increasing" if slope > 0 else "decreasing"
    return {"slope": slope, "intercept": intercept, "direction": direction}


def aggregate(
    x_values: Sequence[Any] | None,
    y_values: Sequence[Any],
    x_kind: str,
    bucket: str = "day",
    stable_ratio: float = 0.1,
    policy: MissingPolicy | None = None,
    max_points: int = 1500,
    sampling_method: str = "uniform",
) -> tuple[dict[str, Any], SamplingInfo]:
    """Bucket a numeric series along its x-axis and describe its trend.

    Returns the payload (sampled points plus a summary over every bucket)
    and the sampling info for the points.
    """

    if x_kind not in X_KINDS:
        raise ValueError(f"Unsupported x-axis kind: {x_kind}")
    if bucket not in BUCKETS:
        raise ValueError(f"Unsupported bucket: {bucket}")
    if x_kind != INDEX_AXIS and x_values is None:
        raise ValueError("x_values are required unless the x-axis is the row index")
    policy = policy or MissingPolicy()

    pairs = _pairs(x_values, y_values, x_kind, policy)
    if not pairs:
        payload = {
            "points": [],
            "summary": {
                "mean": None,
                "trend": {"slope": 0.0, "intercept": 0.0, "direction": "stable"},
                "movingAverageWindow": 0,
                "buckets": 0,
            },
        }
        return payload, SamplingInfo(1.0, "none", 0, 0)

    frame = pd.DataFrame(pairs, columns=["x", "y"])
    if x_kind == DATE:
        frame["key"] = [_truncate(ts, bucket) for ts in frame["x"]]
    else:
        frame["key"] = frame["x"]
    grouped = frame.groupby("key", sort=True)["y"].agg(["mean", "count"])

    values = grouped["mean"].to_numpy(dtype=float)
    n = values.size
    window = moving_average_window(n)
    rolling = pd.Series(values).rolling(window=window, min_periods=window).mean()
    trend = _trend(values, stable_ratio)

    points: list[dict[str, Any]] = []
    for position, (key, row) in enumerate(grouped.iterrows()):
        if x_kind == DATE:
            label: Any = _label(key, bucket)
        elif x_kind == INDEX_AXIS:
            label = int(key)
        else:
            label = float(key)
        point: dict[str, Any] = {
            "time": label,
            "value": float(row["mean"]),
            "count": int(row["count"]),
        }
        if not np.isnan(rolling.iloc[position]):
            point["movingAverage"] = float(rolling.iloc[position])
        point["trend"] = trend["intercept"] + trend["slope"] * position
        points.append(point)

    sampled, info = sample_series(
        points, max_points, method=sampling_method, value_of=lambda p: p["value"]
    )
    payload = {
        "points": sampled,
        "summary": {
            "mean": float(values.mean()),
            "trend": trend,
            "movingAverageWindow": window,
            "buckets": n,
        },
    }
    return payload, info
