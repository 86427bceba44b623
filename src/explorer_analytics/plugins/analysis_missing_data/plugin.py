from __future__ import annotations

from explorer_analytics.core.stat_plugins import MissingPolicy, detect_missing_runs, merge_config
from explorer_analytics.core.types import AnalysisResult

DEFAULTS = {"missing": {"include_zero": True, "include_empty": True}}


class Plugin:
    def run(self, ctx) -> AnalysisResult:
        config = merge_config(DEFAULTS, ctx.settings)
        policy = MissingPolicy.from_config(config)
        # Raw cells: an unparsable number is a value, not a gap.
        columns = {name: ctx.snapshot.raw_values(name) for name in ctx.columns}
        payload = detect_missing_runs(columns, policy)

        if len(ctx.snapshot) == 0:
            return AnalysisResult("missing", "empty", "No rows in selection", payload)
        summary = payload["summary"]
        return AnalysisResult(
            "missing",
            "ok",
            f"{summary['missingStartEvents']} missing run(s) across "
            f"{len(summary['affectedColumns'])} column(s); longest {summary['longestMissingStreak']}",
            payload,
        )
