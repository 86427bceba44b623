from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Sequence

import numpy as np

from explorer_analytics.core.types import UNDEFINED


@dataclass(frozen=True)
class MissingPolicy:
    """Which markers count as missing. None and UNDEFINED always do."""

    include_zero: bool = False
    include_empty: bool = True

    @classmethod
    def from_config(cls, config: dict[str, Any] | None, **overrides: bool) -> "MissingPolicy":
        section = dict((config or {}).get("missing") or {})
        section.update(overrides)
        return cls(
            include_zero=bool(section.get("include_zero", False)),
            include_empty=bool(section.get("include_empty", True)),
        )

    def is_missing(self, value: Any) -> bool:
        if value is None or value is UNDEFINED:
            return True
        if isinstance(value, float) and np.isnan(value):
            return True
        if isinstance(value, str):
            stripped = value.strip()
            if self.include_empty and stripped == "":
                return True
            if self.include_zero and stripped == "0":
                return True
            return False
        if self.include_zero and not isinstance(value, bool) and isinstance(value, (int, float)):
            return value == 0
        return False


def numeric_values(values: Iterable[Any], policy: MissingPolicy) -> np.ndarray:
    """Non-missing numeric values, in order, as a float array."""

    kept = [
        float(value)
        for value in values
        if not policy.is_missing(value) and is_number(value)
    ]
    return np.asarray(kept, dtype=float)


def complete_rows(
    columns: Sequence[Sequence[Any]], policy: MissingPolicy
) -> np.ndarray:
    """Listwise deletion: rows where every column holds a usable number.

    Returns an (n_rows, n_columns) float matrix.
    """

    if not columns:
        return np.empty((0, 0), dtype=float)
    rows: list[list[float]] = []
    for cells in zip(*columns):
        if all(not policy.is_missing(cell) and is_number(cell) for cell in cells):
            rows.append([float(cell) for cell in cells])
    if not rows:
        return np.empty((0, len(columns)), dtype=float)
    return np.asarray(rows, dtype=float)


def is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float, np.integer, np.floating)):
        return bool(np.isfinite(value))
    return False
