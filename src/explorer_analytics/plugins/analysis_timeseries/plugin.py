from __future__ import annotations

from explorer_analytics.core.stat_plugins import MissingPolicy, aggregate, merge_config
from explorer_analytics.core.types import INDEX_AXIS, AnalysisResult

DEFAULTS = {
    "bucket": "day",
    "stable_ratio": 0.1,
    "max_chart_points": 1500,
    "sampling_method": "uniform",
}


class Plugin:
    def run(self, ctx) -> AnalysisResult:
        config = merge_config(DEFAULTS, ctx.settings)
        policy = MissingPolicy.from_config(config)
        x_axis = ctx.request.x_axis or INDEX_AXIS
        if x_axis == INDEX_AXIS:
            x_kind, x_values = INDEX_AXIS, None
        else:
            x_kind, x_values = ctx.column_info[x_axis].type, ctx.snapshot.values(x_axis)

        payload, sampling_info = aggregate(
            x_values,
            ctx.snapshot.values(ctx.columns[0]),
            x_kind,
            bucket=config["bucket"],
            stable_ratio=float(config["stable_ratio"]),
            policy=policy,
            max_points=int(config["max_chart_points"]),
            sampling_method=config["sampling_method"],
        )
        summary = payload["summary"]
        if summary["buckets"] == 0:
            return AnalysisResult(
                "timeseries", "empty", "No paired x/y values in selection", payload,
                sampling_info=sampling_info,
            )
        return AnalysisResult(
            "timeseries",
            "ok",
            f"{summary['buckets']} bucket(s), trend {summary['trend']['direction']}",
            payload,
            sampling_info=sampling_info,
        )
