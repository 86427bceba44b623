import pandas as pd
import pytest

from explorer_analytics.core.stat_plugins.timeseries import aggregate, moving_average_window
from explorer_analytics.core.types import DATE, INDEX_AXIS, NUMERIC


def _two_per_day(days: int) -> tuple[list[pd.Timestamp], list[float]]:
    xs, ys = [], []
    for day in range(days):
        base = pd.Timestamp("2024-01-01") + pd.Timedelta(days=day)
        xs += [base, base + pd.Timedelta(hours=12)]
        ys += [float(day), float(day) + 2.0]
    return xs, ys


def test_day_buckets_average_and_count():
    xs, ys = _two_per_day(10)
    payload, info = aggregate(xs, ys, DATE, bucket="day")
    points = payload["points"]
    assert payload["summary"]["buckets"] == 10
    assert points[0]["time"] == "2024-01-01"
    assert points[0]["value"] == pytest.approx(1.0)
    assert points[0]["count"] == 2
    assert payload["summary"]["trend"]["direction"] == "increasing"
    assert payload["summary"]["trend"]["slope"] == pytest.approx(1.0)
    assert info.method == "none"


def test_week_buckets_use_iso_labels():
    xs, ys = _two_per_day(10)
    payload, _ = aggregate(xs, ys, DATE, bucket="week")
    assert [p["time"] for p in payload["points"]] == ["2024-W01", "2024-W02"]
    assert [p["count"] for p in payload["points"]] == [14, 6]


def test_month_and_hour_labels():
    xs = [pd.Timestamp("2024-03-05 10:15"), pd.Timestamp("2024-03-20 10:45")]
    monthly, _ = aggregate(xs, [1.0, 3.0], DATE, bucket="month")
    assert monthly["points"][0]["time"] == "2024-03"
    hourly, _ = aggregate(xs, [1.0, 3.0], DATE, bucket="hour")
    assert [p["time"] for p in hourly["points"]] == ["2024-03-05 10:00:00", "2024-03-20 10:00:00"]


def test_moving_average_window_and_points():
    ys = [float(v) for v in range(10)]
    payload, _ = aggregate(None, ys, INDEX_AXIS)
    points = payload["points"]
    assert payload["summary"]["movingAverageWindow"] == 3
    assert "movingAverage" not in points[1]
    assert points[2]["movingAverage"] == pytest.approx(1.0)
    assert points[5]["trend"] == pytest.approx(5.0)


def test_moving_average_window_bounds():
    assert moving_average_window(5) == 3
    assert moving_average_window(200) == 20
    assert moving_average_window(10000) == 50


def test_numeric_axis_groups_equal_x():
    payload, _ = aggregate([1, 1, 2, None], [2.0, 4.0, 5.0, 9.0], NUMERIC)
    assert [(p["time"], p["value"], p["count"]) for p in payload["points"]] == [
        (1.0, 3.0, 2),
        (2.0, 5.0, 1),
    ]


def test_constant_series_is_stable():
    payload, _ = aggregate(None, [2.0] * 12, INDEX_AXIS)
    assert payload["summary"]["trend"]["direction"] == "stable"


def test_missing_values_skipped_and_empty_result():
    payload, info = aggregate(None, [None, "", float("nan")], INDEX_AXIS)
    assert payload["points"] == []
    assert payload["summary"]["buckets"] == 0
    assert payload["summary"]["mean"] is None
    assert info.original_size == 0


def test_points_are_sampled():
    payload, info = aggregate(None, [float(v % 13) for v in range(5000)], INDEX_AXIS, max_points=100)
    assert len(payload["points"]) == 100
    assert payload["summary"]["buckets"] == 5000
    assert info.sampled_size == 100


def test_unknown_bucket_rejected():
    with pytest.raises(ValueError):
        aggregate(None, [1.0], INDEX_AXIS, bucket="year")
