from __future__ import annotations

from typing import Any, Mapping, Sequence

from explorer_analytics.core.utils import jsonable

from .missingness import MissingPolicy

DETECTION_DEFAULTS = {"include_zero": True, "include_empty": True}


def _scan_column(name: str, values: Sequence[Any], policy: MissingPolicy) -> tuple[list[dict[str, Any]], dict[str, Any]]:
    events: list[dict[str, Any]] = []
    runs: list[int] = []
    missing_rows = 0
    streak = 0
    last_present: Any = None

    for row_index, value in enumerate(values):
        if policy.is_missing(value):
            missing_rows += 1
            if streak == 0:
                events.append(
                    {
                        "rowIndex": row_index,
                        "columnName": name,
                        "eventType": "missing_start",
                        "value": jsonable(value),
                        "previousValue": jsonable(last_present),
                        "confidence": 1.0,
                    }
                )
            streak += 1
            continue
        if streak > 0:
            events.append(
                {
                    "rowIndex": row_index,
                    "columnName": name,
                    "eventType": "missing_end",
                    "value": jsonable(value),
                    "missingLength": streak,
                    "confidence": 1.0,
                }
            )
            runs.append(streak)
            streak = 0
        last_present = value

    # An unterminated run still counts towards the length statistics.
    if streak > 0:
        runs.append(streak)

    total = len(values)
    stats = {
        "totalMissingEvents": sum(1 for e in events if e["eventType"] == "missing_start"),
        "missingRows": missing_rows,
        "missingPercentage": (missing_rows / total * 100.0) if total else 0.0,
        "averageMissingLength": (sum(runs) / len(runs)) if runs else 0.0,
        "maxMissingLength": max(runs) if runs else 0,
    }
    return events, stats


def detect_missing_runs(
    columns: Mapping[str, Sequence[Any]],
    policy: MissingPolicy | None = None,
) -> dict[str, Any]:
    """Transitions between present and missing values, per column.

    ``columns`` maps column name to its values in snapshot order; iteration
    order of the mapping decides the tie order of events on the same row.
    """

    policy = policy or MissingPolicy(**DETECTION_DEFAULTS)
    events: list[dict[str, Any]] = []
    column_stats: dict[str, dict[str, Any]] = {}
    for name, values in columns.items():
        column_events, stats = _scan_column(name, values, policy)
        events.extend(column_events)
        column_stats[name] = stats

    # sorted() is stable, so same-row events keep column order.
    events = sorted(events, key=lambda e: e["rowIndex"])
    starts = sum(1 for e in events if e["eventType"] == "missing_start")
    return {
        "events": events,
        "summary": {
            "totalEvents": len(events),
            "missingStartEvents": starts,
            "missingEndEvents": len(events) - starts,
            "longestMissingStreak": max(
                (stats["maxMissingLength"] for stats in column_stats.values()), default=0
            ),
            "affectedColumns": [
                name for name, stats in column_stats.items() if stats["totalMissingEvents"] > 0
            ],
        },
        "columnStats": column_stats,
    }
