import pandas as pd

from explorer_analytics.plugins.analysis_column_profile.plugin import Plugin
from tests.conftest import make_context


def test_column_profile_per_column():
    df = pd.DataFrame(
        {
            "amount": [10.0, 20.0, None, 20.0],
            "city": ["Oslo", "", "Oslo", "Rome"],
        }
    )
    result = Plugin().run(make_context(df, ["amount", "city"], {}, analysis_type="column"))
    assert result.status == "ok"
    amount, city = result.payload
    assert amount["columnName"] == "amount"
    assert amount["nullCount"] == 1
    assert amount["dataType"] == "INTEGER"
    assert amount["numericStats"]["max"] == 20.0
    assert city["emptyStringCount"] == 1
    assert city["topValues"][0]["value"] == "Oslo"
    assert city["numericStats"] is None
    assert "amount=INTEGER" in result.summary


def test_column_profile_top_n():
    df = pd.DataFrame({"code": [f"c{i}" for i in range(20)]})
    result = Plugin().run(make_context(df, ["code"], {"top_n": 4}, analysis_type="column"))
    assert len(result.payload[0]["topValues"]) == 4


def test_column_profile_no_rows():
    df = pd.DataFrame({"code": pd.Series([], dtype=object)})
    result = Plugin().run(
        make_context(df, ["code"], {}, analysis_type="column", column_types={"code": "text"})
    )
    assert result.status == "empty"
    assert result.payload[0]["totalRows"] == 0
