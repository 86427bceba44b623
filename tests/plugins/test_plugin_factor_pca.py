import numpy as np
import pandas as pd
import pytest

from explorer_analytics.core.errors import ComputationFailure
from explorer_analytics.plugins.analysis_factor_pca.plugin import Plugin
from tests.conftest import make_context


def _df() -> pd.DataFrame:
    rng = np.random.default_rng(3)
    a = rng.normal(size=120)
    return pd.DataFrame({"a": a, "b": 2 * a + rng.normal(scale=0.1, size=120), "c": rng.normal(size=120)})


def test_factor_payload_and_logging():
    logs: list[str] = []
    ctx = make_context(_df(), ["a", "b", "c"], {}, analysis_type="factor", logs=logs)
    result = Plugin().run(ctx)
    assert result.status == "ok"
    shares = [f["variance"] for f in result.payload["factors"]]
    assert sum(shares) == pytest.approx(1.0)
    assert shares == sorted(shares, reverse=True)
    assert result.payload["rowsUsed"] == 120
    assert any(msg.startswith("factor rows_used=120") for msg in logs)


def test_factor_num_factors_setting():
    ctx = make_context(_df(), ["a", "b", "c"], {"num_factors": 2}, analysis_type="factor")
    result = Plugin().run(ctx)
    assert len(result.payload["factors"]) == 2


def test_factor_listwise_deletion_to_empty():
    df = pd.DataFrame({"a": [1.0, None, 3.0], "b": [None, 2.0, None]})
    result = Plugin().run(make_context(df, ["a", "b"], {}, analysis_type="factor"))
    assert result.status == "empty"
    assert result.payload["factors"] == []


def test_factor_constant_columns_fail():
    df = pd.DataFrame({"a": [1.0] * 5, "b": [2.0] * 5})
    with pytest.raises(ComputationFailure):
        Plugin().run(make_context(df, ["a", "b"], {}, analysis_type="factor"))
