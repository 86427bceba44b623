from __future__ import annotations

from explorer_analytics.core.stat_plugins import (
    MissingPolicy,
    build_histogram,
    merge_config,
    numeric_values,
)
from explorer_analytics.core.types import AnalysisResult

DEFAULTS = {"bins": 10, "precision": 2}


class Plugin:
    def run(self, ctx) -> AnalysisResult:
        config = merge_config(DEFAULTS, ctx.settings)
        policy = MissingPolicy.from_config(config)
        values = numeric_values(ctx.snapshot.values(ctx.columns[0]), policy)
        bins = build_histogram(values, int(config["bins"]), int(config["precision"]))
        if not bins:
            return AnalysisResult("histogram", "empty", "No numeric values in selection", bins)
        return AnalysisResult(
            "histogram",
            "ok",
            f"{values.size} value(s) in {len(bins)} bin(s)",
            bins,
        )
