import datetime as dt

import pandas as pd
import pytest

from explorer_analytics.plugins.analysis_timeseries.plugin import Plugin
from tests.conftest import make_context


def _df() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "ts": [dt.datetime(2026, 3, 1) + dt.timedelta(hours=6 * i) for i in range(40)],
            "value": [float(i) for i in range(40)],
            "pos": [float(i % 10) for i in range(40)],
        }
    )


def test_timeseries_day_buckets_from_date_axis():
    ctx = make_context(_df(), ["value"], {}, analysis_type="timeseries", x_axis="ts")
    result = Plugin().run(ctx)
    assert result.status == "ok"
    points = result.payload["points"]
    assert len(points) == 10
    assert points[0] == {
        "time": "2026-03-01",
        "value": pytest.approx(1.5),
        "count": 4,
        "trend": pytest.approx(1.5),
    }
    assert result.payload["summary"]["trend"]["direction"] == "increasing"
    assert result.sampling_info.method == "none"


def test_timeseries_bucket_setting():
    ctx = make_context(_df(), ["value"], {"bucket": "week"}, analysis_type="timeseries", x_axis="ts")
    result = Plugin().run(ctx)
    assert [p["time"] for p in result.payload["points"]] == ["2026-W09", "2026-W10", "2026-W11"]


def test_timeseries_numeric_axis():
    ctx = make_context(_df(), ["value"], {}, analysis_type="timeseries", x_axis="pos")
    result = Plugin().run(ctx)
    assert result.payload["summary"]["buckets"] == 10
    assert result.payload["points"][0]["count"] == 4


def test_timeseries_index_axis():
    ctx = make_context(_df(), ["value"], {}, analysis_type="timeseries", x_axis="index")
    result = Plugin().run(ctx)
    assert result.payload["summary"]["buckets"] == 40
    assert result.payload["points"][-1]["time"] == 39


def test_timeseries_empty():
    df = pd.DataFrame({"ts": [dt.datetime(2026, 1, 1)], "value": [None]})
    ctx = make_context(
        df, ["value"], {}, analysis_type="timeseries", x_axis="ts", column_types={"value": "numeric"}
    )
    result = Plugin().run(ctx)
    assert result.status == "empty"
    assert result.payload["points"] == []
