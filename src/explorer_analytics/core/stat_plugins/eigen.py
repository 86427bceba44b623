from __future__ import annotations

import numpy as np

from explorer_analytics.core.errors import ComputationFailure

DEFAULT_TOLERANCE = 1e-9
DEFAULT_MAX_SWEEPS = 100


def jacobi_eigh(
    matrix: np.ndarray,
    tol: float = DEFAULT_TOLERANCE,
    max_sweeps: int = DEFAULT_MAX_SWEEPS,
) -> tuple[np.ndarray, np.ndarray, int]:
    """Cyclic Jacobi eigen-decomposition of a symmetric matrix.

    Returns (eigenvalues, eigenvectors as columns, sweeps used), sorted by
    descending eigenvalue. Convergence is declared when the off-diagonal
    Frobenius norm falls below ``tol`` scaled by the matrix norm.
    """

    a = np.array(matrix, dtype=float, copy=True)
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise ValueError("matrix must be square")
    if not np.all(np.isfinite(a)):
        raise ComputationFailure("matrix contains non-finite entries")
    if not np.allclose(a, a.T, rtol=1e-10, atol=1e-12):
        raise ValueError("matrix must be symmetric")
    n = a.shape[0]
    v = np.eye(n)
    scale = max(float(np.linalg.norm(a)), 1.0)

    sweeps = 0
    while _off_norm(a) > tol * scale:
        if sweeps >= max_sweeps:
            raise ComputationFailure(
                f"Jacobi eigen-decomposition did not converge in {max_sweeps} sweeps"
            )
        for p in range(n - 1):
            for q in range(p + 1, n):
                if abs(a[p, q]) <= 1e-300:
                    continue
                _rotate(a, v, p, q)
        sweeps += 1

    values = np.diag(a).copy()
    order = np.lexsort((np.arange(n), -values))
    values = values[order]
    vectors = v[:, order]
    return values, _normalize_signs(vectors), sweeps


def _off_norm(a: np.ndarray) -> float:
    off = a - np.diag(np.diag(a))
    return float(np.sqrt(np.sum(off * off)))


def _rotate(a: np.ndarray, v: np.ndarray, p: int, q: int) -> None:
    apq = a[p, q]
    theta = (a[q, q] - a[p, p]) / (2.0 * apq)
    t = np.sign(theta) / (abs(theta) + np.sqrt(theta * theta + 1.0)) if theta != 0 else 1.0
    c = 1.0 / np.sqrt(t * t + 1.0)
    s = t * c

    ap = a[:, p].copy()
    aq = a[:, q].copy()
    a[:, p] = c * ap - s * aq
    a[:, q] = s * ap + c * aq
    rp = a[p, :].copy()
    rq = a[q, :].copy()
    a[p, :] = c * rp - s * rq
    a[q, :] = s * rp + c * rq
    a[p, q] = 0.0
    a[q, p] = 0.0

    vp = v[:, p].copy()
    vq = v[:, q].copy()
    v[:, p] = c * vp - s * vq
    v[:, q] = s * vp + c * vq


def _normalize_signs(vectors: np.ndarray) -> np.ndarray:
    # Largest-magnitude component positive; ties go to the first component.
    out = vectors.copy()
    for k in range(out.shape[1]):
        pivot = int(np.argmax(np.abs(out[:, k])))
        if out[pivot, k] < 0:
            out[:, k] = -out[:, k]
    return out
