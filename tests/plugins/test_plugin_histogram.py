import pandas as pd

from explorer_analytics.plugins.analysis_histogram.plugin import Plugin
from tests.conftest import make_context


def test_histogram_bins_setting():
    df = pd.DataFrame({"v": [float(i) for i in range(50)]})
    result = Plugin().run(make_context(df, ["v"], {"bins": 5}, analysis_type="histogram"))
    assert result.status == "ok"
    assert len(result.payload) == 5
    assert sum(b["count"] for b in result.payload) == 50


def test_histogram_ignores_missing_values():
    df = pd.DataFrame({"v": [1.0, None, 3.0, 0.0]})
    result = Plugin().run(
        make_context(df, ["v"], {"missing": {"include_zero": True}}, analysis_type="histogram")
    )
    assert sum(b["count"] for b in result.payload) == 2


def test_histogram_empty():
    df = pd.DataFrame({"v": [None]}, dtype=float)
    result = Plugin().run(make_context(df, ["v"], {}, analysis_type="histogram"))
    assert result.status == "empty"
    assert result.payload == []
