from __future__ import annotations

from typing import Any, Mapping, Sequence

import pandas as pd

from explorer_analytics.core.dataset_io import DatasetSnapshot, FrameAccessor
from explorer_analytics.core.types import INDEX_AXIS, AnalysisContext, AnalysisRequest

TABLE = "test_table"


def make_context(
    data: pd.DataFrame | Sequence[Mapping[str, Any]],
    columns: list[str],
    settings: dict | None = None,
    analysis_type: str = "basic",
    x_axis: str | None = None,
    algorithm: str | None = None,
    column_types: dict[str, str] | None = None,
    logs: list[str] | None = None,
) -> AnalysisContext:
    accessor = FrameAccessor({TABLE: data}, {TABLE: column_types or {}})
    info = {column.name: column for column in accessor.get_column_info(TABLE)}
    fetch = list(columns)
    if x_axis is not None and x_axis != INDEX_AXIS:
        fetch.append(x_axis)
    rows = accessor.get_rows(TABLE, fetch)
    snapshot = DatasetSnapshot.from_rows(rows, [info[name] for name in fetch])

    def logger(msg: str) -> None:
        if logs is not None:
            logs.append(msg)

    return AnalysisContext(
        request=AnalysisRequest(
            analysis_type=analysis_type,
            table=TABLE,
            columns=list(columns),
            x_axis=x_axis,
            algorithm=algorithm,
        ),
        snapshot=snapshot,
        settings=dict(settings or {}),
        logger=logger,
        column_info={name: info[name] for name in fetch},
    )
