from __future__ import annotations

from typing import Any

import pandas as pd

from explorer_analytics.core.stat_plugins import (
    MissingPolicy,
    detect,
    merge_config,
    sample_series,
)
from explorer_analytics.core.stat_plugins.missingness import is_number
from explorer_analytics.core.types import DATE, INDEX_AXIS, AnalysisResult
from explorer_analytics.core.utils import jsonable

DEFAULTS = {
    "algorithm": "moving_average",
    "max_chart_points": 2000,
    "sampling_method": "peak_preserving",
}


def _date_label(x: Any) -> Any:
    if not isinstance(x, pd.Timestamp) or pd.isna(x):
        return None
    # Labels are naive UTC wall time.
    if x.tzinfo is not None:
        x = x.tz_convert("UTC").tz_localize(None)
    return jsonable(x)


def _ordered_series(ctx, policy: MissingPolicy) -> tuple[list[float], list[Any] | None]:
    """Usable values in snapshot order, plus their labels when an x-axis is chosen.

    Rows whose x value is missing are dropped; x never reorders the series.
    """

    column = ctx.columns[0]
    y_values = ctx.snapshot.values(column)
    x_axis = ctx.request.x_axis
    usable = [
        (position, float(value))
        for position, value in enumerate(y_values)
        if not policy.is_missing(value) and is_number(value)
    ]
    if x_axis is None:
        return [value for _, value in usable], None
    if x_axis == INDEX_AXIS:
        return [value for _, value in usable], [position for position, _ in usable]

    x_values = ctx.snapshot.values(x_axis)
    x_type = ctx.column_info[x_axis].type
    series: list[float] = []
    labels: list[Any] = []
    for position, value in usable:
        x = x_values[position]
        if x_type == DATE:
            label = _date_label(x)
            if label is None:
                continue
        elif policy.is_missing(x) or not is_number(x):
            continue
        else:
            label = jsonable(x)
        series.append(value)
        labels.append(label)
    return series, labels


class Plugin:
    def run(self, ctx) -> AnalysisResult:
        config = merge_config(DEFAULTS, ctx.settings)
        policy = MissingPolicy.from_config(config)
        algorithm = ctx.request.algorithm or config["algorithm"]

        series, labels = _ordered_series(ctx, policy)
        result = detect(series, labels, algorithm, config.get(algorithm) or {})

        chart = []
        for index, value in enumerate(series):
            point: dict[str, Any] = {"index": index, "value": value}
            if labels is not None:
                point["label"] = labels[index]
            chart.append(point)
        sampled, sampling_info = sample_series(
            chart,
            int(config["max_chart_points"]),
            method=config["sampling_method"],
            value_of=lambda point: point["value"],
            seed=int(config["seed"]),
        )
        payload = {**result, "chartData": sampled}

        if not series:
            return AnalysisResult(
                "changepoint", "empty", "No numeric values in selection", payload,
                sampling_info=sampling_info,
            )
        count = result["statistics"]["count"]
        ctx.logger(f"changepoint algorithm={algorithm} points={len(series)} found={count}")
        return AnalysisResult(
            "changepoint",
            "ok",
            f"{count} change point(s) by {algorithm} over {len(series)} value(s)",
            payload,
            sampling_info=sampling_info,
        )
