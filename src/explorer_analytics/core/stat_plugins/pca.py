from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from explorer_analytics.core.errors import ComputationFailure

from .eigen import DEFAULT_MAX_SWEEPS, DEFAULT_TOLERANCE, jacobi_eigh


def empty_factors() -> dict[str, Any]:
    return {"factors": [], "eigenvalues": [], "cumulativeVariance": [], "rowsUsed": 0}


def principal_components(
    names: Sequence[str],
    matrix: np.ndarray,
    num_factors: int | None = None,
    tol: float = DEFAULT_TOLERANCE,
    max_sweeps: int = DEFAULT_MAX_SWEEPS,
) -> dict[str, Any]:
    """PCA over the population covariance of already listwise-deleted rows.

    ``matrix`` is (rows, len(names)). Fewer than two rows yields the empty
    payload; variance shares always use the full eigenvalue sum even when
    ``num_factors`` truncates the reported factors.
    """

    data = np.asarray(matrix, dtype=float)
    if data.ndim != 2 or data.shape[0] < 2:
        return empty_factors()
    if data.shape[1] != len(names):
        raise ValueError("matrix width does not match the column names")

    centered = data - data.mean(axis=0)
    covariance = centered.T @ centered / data.shape[0]
    if not np.all(np.isfinite(covariance)):
        raise ComputationFailure("covariance matrix contains non-finite entries")
    # Symmetrise away floating-point asymmetry from the product.
    covariance = (covariance + covariance.T) / 2.0

    values, vectors, _ = jacobi_eigh(covariance, tol=tol, max_sweeps=max_sweeps)
    # Covariance is PSD; tiny negatives are rounding noise.
    values = np.where(values < 0, 0.0, values)
    total = float(values.sum())
    if total <= 0.0:
        raise ComputationFailure("total variance is zero; every selected column is constant")

    shares = values / total
    cumulative = np.cumsum(shares)
    keep = len(names) if num_factors is None else max(1, min(int(num_factors), len(names)))

    factors = []
    for k in range(keep):
        factors.append(
            {
                "name": f"Factor {k + 1}",
                "eigenvalue": float(values[k]),
                "variance": float(shares[k]),
                "loadings": [
                    {"variable": str(name), "loading": float(vectors[i, k])}
                    for i, name in enumerate(names)
                ],
            }
        )
    return {
        "factors": factors,
        "eigenvalues": [float(v) for v in values],
        "cumulativeVariance": [float(c) for c in cumulative],
        "rowsUsed": int(data.shape[0]),
    }
