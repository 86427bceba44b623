import numpy as np
import pytest

from explorer_analytics.core.stat_plugins.correlation import correlation_pairs, pearson
from explorer_analytics.core.stat_plugins.missingness import MissingPolicy


def test_pearson_self_correlation_is_one():
    x = np.array([1.0, 3.0, 2.0, 5.0, 4.0])
    assert pearson(x, x) == pytest.approx(1.0)


def test_pearson_is_symmetric_and_bounded():
    x = np.array([1.0, 2.0, 3.0, 4.0, 10.0])
    y = np.array([2.0, 1.0, 4.0, 3.0, 8.0])
    assert pearson(x, y) == pytest.approx(pearson(y, x))
    assert -1.0 <= pearson(x, y) <= 1.0
    assert pearson(x, -2 * x) == pytest.approx(-1.0)


def test_pearson_constant_column_is_zero():
    x = np.array([1.0, 2.0, 3.0])
    assert pearson(x, np.array([5.0, 5.0, 5.0])) == 0.0


def test_correlation_pairs_order_and_pairwise_deletion():
    names = ["a", "b", "c"]
    columns = [
        [1.0, 2.0, 3.0, 4.0],
        [2.0, None, 6.0, 8.0],
        [4.0, 3.0, 2.0, ""],
    ]
    pairs = correlation_pairs(names, columns, MissingPolicy())
    assert [(p["column1"], p["column2"]) for p in pairs] == [("a", "b"), ("a", "c"), ("b", "c")]
    assert [p["n"] for p in pairs] == [3, 3, 2]
    assert pairs[0]["correlation"] == pytest.approx(1.0)
    assert pairs[1]["correlation"] == pytest.approx(-1.0)


def test_correlation_pairs_without_overlap_reports_zero():
    pairs = correlation_pairs(["a", "b"], [[1.0, None], [None, 2.0]], MissingPolicy())
    assert pairs == [{"column1": "a", "column2": "b", "correlation": 0.0, "n": 0}]
