from __future__ import annotations

from explorer_analytics.core.stat_plugins import analyze_text, merge_config
from explorer_analytics.core.types import AnalysisResult

DEFAULTS = {"top_n": 15}


class Plugin:
    def run(self, ctx) -> AnalysisResult:
        config = merge_config(DEFAULTS, ctx.settings)
        payload = analyze_text(ctx.snapshot.values(ctx.columns[0]), top_n=int(config["top_n"]))
        stats = payload["statistics"]
        if stats is None:
            return AnalysisResult("text", "empty", "No text records in selection", payload)
        readability = payload["readability"]
        return AnalysisResult(
            "text",
            "ok",
            f"{stats['totalRecords']} record(s), {stats['totalWords']} word(s), "
            f"readability {readability['readabilityScore']:.1f} ({readability['complexityLevel']})",
            payload,
        )
