from __future__ import annotations

from explorer_analytics.core.stat_plugins import merge_config, profile_column
from explorer_analytics.core.types import AnalysisResult

DEFAULTS = {"top_n": 10}


class Plugin:
    def run(self, ctx) -> AnalysisResult:
        config = merge_config(DEFAULTS, ctx.settings)
        top_n = int(config["top_n"])
        profiles = [
            profile_column(name, ctx.snapshot.raw_values(name), top_n=top_n)
            for name in ctx.columns
        ]
        if len(ctx.snapshot) == 0:
            return AnalysisResult("column", "empty", "No rows in selection", profiles)
        types = ", ".join(f"{p['columnName']}={p['dataType']}" for p in profiles)
        return AnalysisResult("column", "ok", f"Profiled {len(profiles)} column(s): {types}", profiles)
