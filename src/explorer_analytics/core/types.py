from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

NUMERIC = "numeric"
TEXT = "text"
DATE = "date"
BOOLEAN = "boolean"

COLUMN_TYPES = frozenset({NUMERIC, TEXT, DATE, BOOLEAN})

# Synthetic x-axis meaning "use the row position in the snapshot".
INDEX_AXIS = "index"


class _Undefined:
    """Marker for a row that does not carry the requested column at all."""

    _instance: "_Undefined | None" = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


@dataclass(frozen=True)
class Column:
    name: str
    type: str

    def __post_init__(self) -> None:
        if self.type not in COLUMN_TYPES:
            raise ValueError(f"Unknown column type for {self.name!r}: {self.type!r}")


@dataclass
class AnalysisRequest:
    analysis_type: str
    table: str
    columns: list[str]
    x_axis: str | None = None
    algorithm: str | None = None
    options: dict[str, Any] = field(default_factory=dict)
    # Opaque to the core; handed to the accessor untouched.
    filter_predicate: Callable[[dict[str, Any]], bool] | None = None


@dataclass
class SamplingInfo:
    sampling_ratio: float
    method: str
    original_size: int
    sampled_size: int

    @property
    def is_reduced(self) -> bool:
        return self.sampled_size < self.original_size

    def to_dict(self) -> dict[str, Any]:
        return {
            "samplingRatio": self.sampling_ratio,
            "method": self.method,
            "originalSize": self.original_size,
            "sampledSize": self.sampled_size,
            "isReduced": self.is_reduced,
        }


@dataclass
class PerformanceMetrics:
    processing_time_ms: float
    original_size: int
    processed_size: int
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "processingTimeMs": self.processing_time_ms,
            "originalSize": self.original_size,
            "processedSize": self.processed_size,
        }
        payload.update(self.extra)
        return payload


@dataclass
class AnalysisResult:
    analysis_type: str
    status: str
    summary: str
    payload: Any
    sampling_info: SamplingInfo | None = None
    performance_metrics: PerformanceMetrics | None = None
    debug: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "analysisType": self.analysis_type,
            "status": self.status,
            "summary": self.summary,
            "result": self.payload,
            "samplingInfo": self.sampling_info.to_dict() if self.sampling_info else None,
            "performanceMetrics": (
                self.performance_metrics.to_dict() if self.performance_metrics else None
            ),
        }


@dataclass
class AnalysisContext:
    request: AnalysisRequest
    snapshot: Any
    settings: dict[str, Any]
    logger: Callable[[str], None]
    column_info: dict[str, Column] = field(default_factory=dict)

    @property
    def columns(self) -> list[str]:
        return list(self.request.columns)
