from __future__ import annotations

import re
from collections import Counter
from typing import Any, Sequence

import numpy as np
import pandas as pd

from explorer_analytics.core.types import BOOLEAN, DATE, NUMERIC, TEXT, UNDEFINED

_INTEGER_RE = re.compile(r"^-?\d+$")
_FLOAT_RE = re.compile(r"^-?\d*\.\d+$")
_DATE_RE = re.compile(r"^(\d{4}-\d{2}-\d{2}|\d{2}/\d{2}/\d{4}|\d{4}/\d{2}/\d{2})")

INFERENCE_SAMPLE = 100
MAJORITY = 0.8

# Profile data types collapse onto the four analysis column types.
DATA_TYPE_TO_COLUMN_TYPE = {
    "INTEGER": NUMERIC,
    "FLOAT": NUMERIC,
    "NUMERIC": NUMERIC,
    "DATE": DATE,
    "BOOLEAN": BOOLEAN,
    "TEXT": TEXT,
}


def _is_absent(value: Any) -> bool:
    if value is None or value is UNDEFINED:
        return True
    if isinstance(value, float) and np.isnan(value):
        return True
    return value is pd.NaT


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _parses_as_number(text: str) -> bool:
    try:
        return bool(np.isfinite(float(text)))
    except ValueError:
        return False


def infer_data_type(values: Sequence[Any], sample_size: int = INFERENCE_SAMPLE) -> str:
    """INTEGER, FLOAT, NUMERIC, DATE, BOOLEAN or TEXT by majority of a sample."""

    counts = Counter()
    seen = 0
    for value in values[:sample_size]:
        if _is_absent(value):
            continue
        text = _as_text(value)
        if text == "":
            continue
        seen += 1
        if text.lower() in ("true", "false"):
            counts["BOOLEAN"] += 1
        elif _INTEGER_RE.match(text):
            counts["INTEGER"] += 1
        elif _FLOAT_RE.match(text):
            counts["FLOAT"] += 1
        elif _DATE_RE.match(text) and not pd.isna(pd.to_datetime(text, errors="coerce")):
            counts["DATE"] += 1
    if seen == 0:
        return "TEXT"
    threshold = seen * MAJORITY
    if counts["INTEGER"] >= threshold:
        return "INTEGER"
    if counts["FLOAT"] >= threshold:
        return "FLOAT"
    if counts["INTEGER"] + counts["FLOAT"] >= threshold:
        return "NUMERIC"
    if counts["DATE"] >= threshold:
        return "DATE"
    if counts["BOOLEAN"] >= threshold:
        return "BOOLEAN"
    return "TEXT"


def infer_column_types(df: pd.DataFrame, sample_size: int = INFERENCE_SAMPLE) -> dict[str, str]:
    types: dict[str, str] = {}
    for col in df.columns:
        series = df[col]
        if pd.api.types.is_bool_dtype(series):
            types[str(col)] = BOOLEAN
        elif pd.api.types.is_numeric_dtype(series):
            types[str(col)] = NUMERIC
        elif pd.api.types.is_datetime64_any_dtype(series):
            types[str(col)] = DATE
        else:
            data_type = infer_data_type(series.tolist(), sample_size)
            types[str(col)] = DATA_TYPE_TO_COLUMN_TYPE[data_type]
    return types


def profile_column(name: str, values: Sequence[Any], top_n: int = 10) -> dict[str, Any]:
    total = len(values)
    null_count = 0
    empty_count = 0
    frequency: Counter = Counter()
    numbers: list[float] = []
    for value in values:
        if _is_absent(value):
            null_count += 1
            continue
        text = _as_text(value)
        if text == "":
            empty_count += 1
            continue
        frequency[text] += 1
        if not isinstance(value, bool) and _parses_as_number(text):
            numbers.append(float(text))

    def pct(count: int) -> float:
        return count / total * 100.0 if total else 0.0

    numeric_stats = None
    if numbers and len(numbers) >= total * 0.5:
        arr = np.sort(np.asarray(numbers, dtype=float))
        numeric_stats = {
            "min": float(arr[0]),
            "max": float(arr[-1]),
            "mean": float(arr.mean()),
            "median": float(arr[arr.size // 2]),
            "std": float(arr.std()),
        }

    # Ties keep first-seen order.
    ranked = sorted(frequency.items(), key=lambda item: -item[1])[:top_n]
    return {
        "columnName": name,
        "totalRows": total,
        "uniqueValues": len(frequency),
        "nullCount": null_count,
        "nullPercentage": pct(null_count),
        "emptyStringCount": empty_count,
        "emptyStringPercentage": pct(empty_count),
        "dataType": infer_data_type(values),
        "sampleValues": list(frequency)[:top_n],
        "topValues": [
            {"value": value, "count": count, "percentage": pct(count)} for value, count in ranked
        ],
        "numericStats": numeric_stats,
    }
