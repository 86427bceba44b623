import numpy as np
import pytest

from explorer_analytics.core.stat_plugins.sampling import (
    SAMPLING_METHODS,
    performance_metrics,
    recommended_sampling,
    sample_series,
)


def _points(n: int) -> list[dict]:
    return [{"i": i, "v": float(np.sin(i / 37.0) * 10 + (i % 7))} for i in range(n)]


def test_uniform_sampling_10000_to_500():
    points = _points(10000)
    sampled, info = sample_series(points, 500, value_of=lambda p: p["v"])
    assert len(sampled) == 500
    assert info.sampling_ratio == pytest.approx(0.05)
    assert info.original_size == 10000
    assert info.sampled_size == 500
    assert info.method == "uniform"
    assert sampled[0] is points[0]
    assert sampled[-1] is points[-1]


@pytest.mark.parametrize("method", SAMPLING_METHODS)
def test_every_method_keeps_edges_and_order(method):
    points = _points(10000)
    sampled, info = sample_series(points, 500, method=method, value_of=lambda p: p["v"])
    assert len(sampled) == 500
    assert sampled[0]["i"] == 0
    assert sampled[-1]["i"] == 9999
    positions = [p["i"] for p in sampled]
    assert positions == sorted(set(positions))
    assert info.method == method
    assert info.to_dict()["isReduced"] is True


def test_sampling_is_deterministic():
    points = _points(5000)
    first, _ = sample_series(points, 300, method="systematic", seed=9)
    second, _ = sample_series(points, 300, method="systematic", seed=9)
    assert first == second


def test_small_series_passes_through():
    sampled, info = sample_series([1.0, 2.0, 3.0], 10)
    assert sampled == [1.0, 2.0, 3.0]
    assert info.sampling_ratio == 1.0
    assert info.method == "none"


def test_value_methods_fall_back_without_values():
    sampled, info = sample_series(["a"] * 100, 10, method="lttb")
    assert len(sampled) == 10
    assert info.method == "uniform"


def test_peak_preserving_keeps_spike():
    values = [0.0] * 5000
    values[1234] = 50.0
    sampled, _ = sample_series(values, 100, method="peak_preserving")
    assert 50.0 in sampled


def test_unknown_method_rejected():
    with pytest.raises(ValueError):
        sample_series([1.0, 2.0, 3.0], 2, method="random")


def test_recommended_sampling_tiers():
    assert recommended_sampling(500)["method"] == "uniform"
    assert recommended_sampling(10000) == {"max_points": 1500, "method": "systematic"}
    assert recommended_sampling(100000)["method"] == "peak_preserving"


def test_performance_metrics_extras():
    metrics = performance_metrics(60000, 2000, 12.3456).to_dict()
    assert metrics["processingTimeMs"] == 12.35
    assert metrics["isReduced"] is True
    assert metrics["reductionRatio"] == pytest.approx(96.7)
    assert len(metrics["recommendations"]) == 2
    assert performance_metrics(10, 10, 1.0).to_dict()["recommendations"] == []
