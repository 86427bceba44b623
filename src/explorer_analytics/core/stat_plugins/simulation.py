from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

import numpy as np

from explorer_analytics.core.types import NUMERIC, TEXT


def inject_missing(
    rows: Sequence[Mapping[str, Any]],
    column_types: Mapping[str, str],
    rate: float,
    include_nulls: bool = True,
    include_empty: bool = True,
    include_zero: bool = False,
    include_undefined: bool = False,
    seed: int = 1337,
    exclude: Iterable[str] = (),
) -> list[dict[str, Any]]:
    """Copy ``rows`` replacing a ``rate`` share of cells with missing markers.

    Each replaced cell draws uniformly among the markers allowed for its
    column: null, empty string (text), zero (numeric) or undefined, where
    undefined removes the key from the row. Input rows are not modified.
    """

    if not 0.0 <= rate <= 1.0:
        raise ValueError("rate must be within [0, 1]")
    rng = np.random.default_rng(seed)
    skipped = set(exclude)
    out: list[dict[str, Any]] = []
    for row in rows:
        new_row = dict(row)
        for column, column_type in column_types.items():
            if column in skipped:
                continue
            # Draw for every cell so the pattern does not depend on the flags.
            hit = rng.random() < rate
            pick = rng.random()
            if not hit:
                continue
            markers: list[str] = []
            if include_nulls:
                markers.append("null")
            if include_empty and column_type == TEXT:
                markers.append("empty")
            if include_zero and column_type == NUMERIC:
                markers.append("zero")
            if include_undefined:
                markers.append("undefined")
            if not markers:
                continue
            marker = markers[min(int(pick * len(markers)), len(markers) - 1)]
            if marker == "null":
                new_row[column] = None
            elif marker == "empty":
                new_row[column] = ""
            elif marker == "zero":
                new_row[column] = 0
            else:
                new_row.pop(column, None)
        out.append(new_row)
    return out
