from __future__ import annotations

from explorer_analytics.core.stat_plugins import MissingPolicy, correlation_pairs, merge_config
from explorer_analytics.core.types import AnalysisResult


class Plugin:
    def run(self, ctx) -> AnalysisResult:
        config = merge_config(ctx.settings)
        policy = MissingPolicy.from_config(config)
        names = ctx.columns
        pairs = correlation_pairs(names, [ctx.snapshot.values(name) for name in names], policy)

        if all(pair["n"] < 2 for pair in pairs):
            return AnalysisResult("correlation", "empty", "Fewer than two paired values", pairs)
        strongest = max(pairs, key=lambda pair: abs(pair["correlation"]))
        return AnalysisResult(
            "correlation",
            "ok",
            f"{len(pairs)} pair(s); strongest {strongest['column1']}~{strongest['column2']} "
            f"r={strongest['correlation']:.3f}",
            pairs,
        )
