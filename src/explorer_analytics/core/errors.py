from __future__ import annotations


class AnalysisError(ValueError):
    """Base class for errors surfaced to the caller before any computation."""


class InvalidSelection(AnalysisError):
    def __init__(self, message: str, *, min_columns: int | None = None, max_columns: int | None = None) -> None:
        super().__init__(message)
        self.min_columns = min_columns
        self.max_columns = max_columns


class UnsupportedColumnType(AnalysisError):
    def __init__(self, column: str, column_type: str, accepted: list[str]) -> None:
        super().__init__(
            f"Column {column!r} has type {column_type!r}; expected one of {sorted(accepted)}"
        )
        self.column = column
        self.column_type = column_type
        self.accepted = list(accepted)


class InvalidConfiguration(AnalysisError):
    pass


class ComputationFailure(RuntimeError):
    """Numeric instability: the computation could not produce a trustworthy answer."""
