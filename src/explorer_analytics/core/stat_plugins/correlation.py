from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from .missingness import MissingPolicy, complete_rows


def pearson(x: np.ndarray, y: np.ndarray) -> float:
    """Pearson r; zero variance on either side is defined as 0."""

    if x.size < 2 or x.size != y.size:
        return 0.0
    dx = x - x.mean()
    dy = y - y.mean()
    sxx = float(np.dot(dx, dx))
    syy = float(np.dot(dy, dy))
    if sxx <= 0.0 or syy <= 0.0:
        return 0.0
    r = float(np.dot(dx, dy)) / float(np.sqrt(sxx * syy))
    return float(np.clip(r, -1.0, 1.0))


def correlation_pairs(
    names: Sequence[str],
    columns: Sequence[Sequence[Any]],
    policy: MissingPolicy,
) -> list[dict[str, Any]]:
    """All n*(n-1)/2 pairs in selection order, pairwise deletion per pair."""

    results: list[dict[str, Any]] = []
    for i in range(len(names)):
        for j in range(i + 1, len(names)):
            paired = complete_rows([columns[i], columns[j]], policy)
            r = pearson(paired[:, 0], paired[:, 1]) if paired.shape[0] else 0.0
            results.append(
                {
                    "column1": names[i],
                    "column2": names[j],
                    "correlation": r,
                    "n": int(paired.shape[0]),
                }
            )
    return results
