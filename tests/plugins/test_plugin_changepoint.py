import datetime as dt

import pandas as pd
import pytest

from explorer_analytics.plugins.analysis_changepoint.plugin import Plugin
from tests.conftest import make_context


def _step_df() -> pd.DataFrame:
    rows = 100
    return pd.DataFrame(
        {
            "metric": [0.0] * 50 + [100.0] * 50,
            "ts": [dt.datetime(2026, 1, 1) + dt.timedelta(hours=i) for i in range(rows)],
            "seq": [float(i) for i in range(rows)],
        }
    )


@pytest.mark.parametrize("algorithm", ["moving_average", "cusum", "ewma", "binary_segmentation"])
def test_changepoint_step_without_x_axis(algorithm):
    ctx = make_context(_step_df(), ["metric"], {}, analysis_type="changepoint", algorithm=algorithm)
    result = Plugin().run(ctx)
    assert result.status == "ok"
    assert [p["index"] for p in result.payload["changePoints"]] == [50]
    assert result.payload["statistics"]["algorithm"] == algorithm
    assert "label" not in result.payload["changePoints"][0]


def test_changepoint_algorithm_from_settings():
    ctx = make_context(_step_df(), ["metric"], {"algorithm": "cusum"}, analysis_type="changepoint")
    result = Plugin().run(ctx)
    assert result.payload["statistics"]["algorithm"] == "cusum"


def test_changepoint_keeps_snapshot_order_with_date_axis():
    df = _step_df().iloc[::-1].reset_index(drop=True)
    ctx = make_context(df, ["metric"], {}, analysis_type="changepoint", x_axis="ts")
    result = Plugin().run(ctx)
    point = result.payload["changePoints"][0]
    assert point["index"] == 50
    assert point["value"] == 0.0
    assert point["label"] == "2026-01-03T01:00:00"
    assert result.payload["chartData"][0] == {
        "index": 0,
        "value": 100.0,
        "label": "2026-01-05T03:00:00",
    }


def test_changepoint_numeric_axis_is_a_label_only():
    df = pd.DataFrame(
        {
            "metric": [0.0] * 50 + [100.0] * 50,
            "x": [float(100 - i) for i in range(100)],
        }
    )
    ctx = make_context(
        df, ["metric"], {}, analysis_type="changepoint", x_axis="x", algorithm="ewma"
    )
    result = Plugin().run(ctx)
    assert [(p["index"], p["value"], p["label"]) for p in result.payload["changePoints"]] == [
        (50, 100.0, 50.0)
    ]


def test_changepoint_drops_rows_without_x():
    df = pd.DataFrame(
        {
            "metric": [1.0, 2.0, 3.0, 4.0],
            "ts": ["2024-01-01", None, "not a date", "2024-01-04"],
        }
    )
    ctx = make_context(
        df,
        ["metric"],
        {},
        analysis_type="changepoint",
        x_axis="ts",
        column_types={"metric": "numeric", "ts": "date"},
    )
    result = Plugin().run(ctx)
    assert [p["value"] for p in result.payload["chartData"]] == [1.0, 4.0]


def test_changepoint_mixed_timezone_labels_are_utc():
    df = pd.DataFrame(
        {
            "metric": [1.0, 2.0, 3.0],
            "ts": ["2024-01-01T09:00:00+09:00", "2024-01-02", "2024-01-03"],
        }
    )
    ctx = make_context(
        df,
        ["metric"],
        {},
        analysis_type="changepoint",
        x_axis="ts",
        column_types={"metric": "numeric", "ts": "date"},
    )
    result = Plugin().run(ctx)
    assert result.status == "ok"
    assert [p["label"] for p in result.payload["chartData"]] == [
        "2024-01-01T00:00:00",
        "2024-01-02T00:00:00",
        "2024-01-03T00:00:00",
    ]


def test_changepoint_index_axis_labels_are_positions():
    df = pd.DataFrame({"metric": [None, 1.0] + [0.0] * 49 + [100.0] * 50})
    ctx = make_context(df, ["metric"], {}, analysis_type="changepoint", x_axis="index")
    result = Plugin().run(ctx)
    labels = [p["label"] for p in result.payload["chartData"]]
    assert labels[0] == 1
    assert len(labels) == 100


def test_changepoint_chart_is_sampled():
    ctx = make_context(
        _step_df(), ["metric"], {"max_chart_points": 20}, analysis_type="changepoint", x_axis="seq"
    )
    result = Plugin().run(ctx)
    assert len(result.payload["chartData"]) == 20
    assert result.sampling_info.original_size == 100
    assert result.sampling_info.method == "peak_preserving"
    assert [p["index"] for p in result.payload["changePoints"]] == [50]


def test_changepoint_algorithm_params():
    ctx = make_context(
        _step_df(),
        ["metric"],
        {"algorithm": "ewma", "ewma": {"lambda": 0.5, "control_limit": 10.0}},
        analysis_type="changepoint",
    )
    result = Plugin().run(ctx)
    # Limit 10 * 50 * sqrt(1/3) is above the step height.
    assert result.payload["changePoints"] == []


def test_changepoint_empty_series():
    df = pd.DataFrame({"metric": [None, None]}, dtype=float)
    result = Plugin().run(make_context(df, ["metric"], {}, analysis_type="changepoint"))
    assert result.status == "empty"
    assert result.payload["chartData"] == []
