from __future__ import annotations

from typing import Any

from explorer_analytics.core.stat_plugins import (
    MissingPolicy,
    describe,
    merge_config,
    numeric_values,
)
from explorer_analytics.core.types import AnalysisResult


class Plugin:
    def run(self, ctx) -> AnalysisResult:
        config = merge_config(ctx.settings)
        policy = MissingPolicy.from_config(config)
        snapshot = ctx.snapshot

        records: list[dict[str, Any]] = []
        for name in ctx.columns:
            stats = describe(numeric_values(snapshot.values(name), policy))
            records.append(
                {
                    "column": name,
                    **stats,
                    "invalidCount": int(snapshot.invalid_counts.get(name, 0)),
                }
            )

        if all(record["count"] == 0 for record in records):
            return AnalysisResult("basic", "empty", "No numeric values in selection", records)
        return AnalysisResult(
            "basic",
            "ok",
            f"Described {len(records)} column(s) over {len(snapshot)} row(s)",
            records,
        )
