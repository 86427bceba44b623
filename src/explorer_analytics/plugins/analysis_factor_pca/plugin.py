from __future__ import annotations

from explorer_analytics.core.stat_plugins import (
    MissingPolicy,
    complete_rows,
    merge_config,
    principal_components,
)
from explorer_analytics.core.types import AnalysisResult

DEFAULTS = {
    "num_factors": None,
    "tolerance": 1e-9,
    "max_sweeps": 100,
}


class Plugin:
    def run(self, ctx) -> AnalysisResult:
        config = merge_config(DEFAULTS, ctx.settings)
        policy = MissingPolicy.from_config(config)
        names = ctx.columns
        matrix = complete_rows([ctx.snapshot.values(name) for name in names], policy)

        payload = principal_components(
            names,
            matrix,
            num_factors=config.get("num_factors"),
            tol=float(config["tolerance"]),
            max_sweeps=int(config["max_sweeps"]),
        )
        if not payload["factors"]:
            return AnalysisResult("factor", "empty", "Fewer than two complete rows", payload)
        lead = payload["factors"][0]
        ctx.logger(f"factor rows_used={payload['rowsUsed']} leading_share={lead['variance']:.4f}")
        return AnalysisResult(
            "factor",
            "ok",
            f"{lead['name']} explains {lead['variance'] * 100:.1f}% of variance "
            f"({payload['rowsUsed']} complete rows)",
            payload,
        )
