from __future__ import annotations

import datetime as dt
from typing import Any, Callable, Mapping, Protocol, Sequence

import numpy as np
import pandas as pd

from .errors import InvalidSelection
from .stat_plugins.columns import infer_column_types
from .types import BOOLEAN, DATE, NUMERIC, TEXT, UNDEFINED, Column

RowPredicate = Callable[[dict[str, Any]], bool]


class DataAccessor(Protocol):
    def get_rows(
        self, table: str, columns: Sequence[str], filter_predicate: RowPredicate | None = None
    ) -> list[dict[str, Any]]: ...

    def get_column_info(self, table: str) -> list[Column]: ...


def _plain(value: Any) -> Any:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and np.isnan(value):
        return None
    if isinstance(value, dt.datetime) and not isinstance(value, pd.Timestamp):
        return pd.Timestamp(value)
    return value


class FrameAccessor:
    """In-memory accessor over named tables.

    A table is either a DataFrame or a list of row dicts; row dicts may omit
    keys, which surfaces as UNDEFINED in the snapshot. Column types are
    inferred unless declared in ``column_types``.
    """

    def __init__(
        self,
        tables: Mapping[str, pd.DataFrame | Sequence[Mapping[str, Any]]],
        column_types: Mapping[str, Mapping[str, str]] | None = None,
    ) -> None:
        self._records: dict[str, list[dict[str, Any]]] = {}
        self._columns: dict[str, list[Column]] = {}
        declared_all = column_types or {}
        for name, table in tables.items():
            if isinstance(table, pd.DataFrame):
                frame = table
                records = [
                    {str(k): _plain(v) for k, v in row.items()}
                    for row in table.to_dict(orient="records")
                ]
            else:
                records = [dict(row) for row in table]
                frame = pd.DataFrame.from_records(records)
            inferred = infer_column_types(frame)
            declared = dict(declared_all.get(name, {}))
            self._records[name] = records
            self._columns[name] = [
                Column(str(col), declared.get(str(col), inferred.get(str(col), TEXT)))
                for col in frame.columns
            ]

    def tables(self) -> list[str]:
        return sorted(self._records)

    def get_column_info(self, table: str) -> list[Column]:
        if table not in self._columns:
            raise InvalidSelection(f"Unknown table: {table}")
        return list(self._columns[table])

    def get_rows(
        self, table: str, columns: Sequence[str], filter_predicate: RowPredicate | None = None
    ) -> list[dict[str, Any]]:
        if table not in self._records:
            raise InvalidSelection(f"Unknown table: {table}")
        out: list[dict[str, Any]] = []
        for record in self._records[table]:
            if filter_predicate is not None and not filter_predicate(dict(record)):
                continue
            out.append({col: record[col] for col in columns if col in record})
        return out


def _coerce_numeric(value: Any) -> tuple[Any, bool]:
    if isinstance(value, bool):
        return None, False
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
        if np.isnan(number):
            return None, True
        return (number, True) if np.isfinite(number) else (None, False)
    if isinstance(value, str):
        if value.strip() == "":
            return value, True
        try:
            number = float(value.strip())
        except ValueError:
            return None, False
        return (number, True) if np.isfinite(number) else (None, False)
    return None, False


def _coerce_date(value: Any) -> tuple[Any, bool]:
    if isinstance(value, pd.Timestamp):
        return value, True
    if isinstance(value, (dt.datetime, dt.date)):
        return pd.Timestamp(value), True
    if isinstance(value, str):
        if value.strip() == "":
            return value, True
        parsed = pd.to_datetime(value.strip(), errors="coerce")
        return (None, False) if pd.isna(parsed) else (pd.Timestamp(parsed), True)
    return None, False


def _coerce_boolean(value: Any) -> tuple[Any, bool]:
    if isinstance(value, (bool, np.bool_)):
        return bool(value), True
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "":
            return value, True
        if lowered in ("true", "false"):
            return lowered == "true", True
    return None, False


def _coerce_text(value: Any) -> tuple[Any, bool]:
    if isinstance(value, str):
        return value, True
    if isinstance(value, pd.Timestamp):
        return value.isoformat(), True
    return str(value), True


_COERCERS = {
    NUMERIC: _coerce_numeric,
    DATE: _coerce_date,
    BOOLEAN: _coerce_boolean,
    TEXT: _coerce_text,
}


class DatasetSnapshot:
    """Typed, column-oriented view of the rows returned for one request.

    None and UNDEFINED pass through untouched, and so do empty strings so
    that missingness toggles still see them. Unparsable cells become None
    and are counted in ``invalid_counts``.
    """

    def __init__(
        self,
        columns: list[Column],
        raw: dict[str, list[Any]],
        typed: dict[str, list[Any]],
        invalid_counts: dict[str, int],
        row_count: int,
    ) -> None:
        self.columns = columns
        self._raw = raw
        self._typed = typed
        self.invalid_counts = invalid_counts
        self.row_count = row_count

    @classmethod
    def from_rows(cls, rows: Sequence[Mapping[str, Any]], columns: Sequence[Column]) -> "DatasetSnapshot":
        raw: dict[str, list[Any]] = {}
        typed: dict[str, list[Any]] = {}
        invalid: dict[str, int] = {}
        for column in columns:
            coerce = _COERCERS[column.type]
            raw_values = [row.get(column.name, UNDEFINED) for row in rows]
            values: list[Any] = []
            bad = 0
            for value in raw_values:
                value = _plain(value) if value is not UNDEFINED else value
                if value is None or value is UNDEFINED:
                    values.append(value)
                    continue
                coerced, ok = coerce(value)
                if not ok:
                    bad += 1
                values.append(coerced)
            raw[column.name] = raw_values
            typed[column.name] = values
            invalid[column.name] = bad
        return cls(list(columns), raw, typed, invalid, len(rows))

    def __len__(self) -> int:
        return self.row_count

    def column(self, name: str) -> Column:
        for column in self.columns:
            if column.name == name:
                return column
        raise KeyError(name)

    def values(self, name: str) -> list[Any]:
        return list(self._typed[name])

    def raw_values(self, name: str) -> list[Any]:
        return list(self._raw[name])
