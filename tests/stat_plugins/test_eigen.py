import numpy as np
import pytest

from explorer_analytics.core.errors import ComputationFailure
from explorer_analytics.core.stat_plugins.eigen import jacobi_eigh


def test_jacobi_diagonal_matrix_needs_no_sweeps():
    values, vectors, sweeps = jacobi_eigh(np.diag([2.0, 5.0]))
    assert sweeps == 0
    assert values.tolist() == [5.0, 2.0]
    assert np.allclose(vectors, [[0.0, 1.0], [1.0, 0.0]])


def test_jacobi_matches_numpy_eigenvalues():
    rng = np.random.default_rng(7)
    base = rng.normal(size=(6, 4))
    matrix = base.T @ base
    values, vectors, _ = jacobi_eigh(matrix)
    expected = np.sort(np.linalg.eigvalsh(matrix))[::-1]
    assert np.allclose(values, expected, atol=1e-8)
    assert np.allclose(matrix @ vectors, vectors * values, atol=1e-7)
    assert np.allclose(vectors.T @ vectors, np.eye(4), atol=1e-8)


def test_jacobi_sign_convention():
    _, vectors, _ = jacobi_eigh(np.array([[2.0, 1.0], [1.0, 2.0]]))
    for k in range(2):
        pivot = int(np.argmax(np.abs(vectors[:, k])))
        assert vectors[pivot, k] > 0


def test_jacobi_rejects_asymmetric_matrix():
    with pytest.raises(ValueError):
        jacobi_eigh(np.array([[1.0, 2.0], [0.0, 1.0]]))


def test_jacobi_non_finite_input_fails():
    with pytest.raises(ComputationFailure):
        jacobi_eigh(np.array([[np.nan, 0.0], [0.0, 1.0]]))


def test_jacobi_sweep_limit_fails():
    with pytest.raises(ComputationFailure):
        jacobi_eigh(np.array([[2.0, 1.0], [1.0, 2.0]]), max_sweeps=0)
