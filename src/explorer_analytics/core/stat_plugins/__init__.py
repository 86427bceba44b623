from .budget import BudgetTimer
from .changepoint import ALGORITHMS, detect
from .columns import infer_column_types, infer_data_type, profile_column
from .config import DEFAULT_COMMON_CONFIG, merge_config
from .correlation import correlation_pairs, pearson
from .descriptive import describe
from .eigen import jacobi_eigh
from .histogram import build_histogram
from .missing_data import detect_missing_runs
from .missingness import MissingPolicy, complete_rows, numeric_values
from .pca import empty_factors, principal_components
from .sampling import performance_metrics, recommended_sampling, sample_series
from .simulation import inject_missing
from .text_analysis import analyze_text
from .timeseries import aggregate

__all__ = [
    "ALGORITHMS",
    "DEFAULT_COMMON_CONFIG",
    "BudgetTimer",
    "MissingPolicy",
    "aggregate",
    "analyze_text",
    "build_histogram",
    "complete_rows",
    "correlation_pairs",
    "describe",
    "detect",
    "detect_missing_runs",
    "empty_factors",
    "infer_column_types",
    "infer_data_type",
    "inject_missing",
    "jacobi_eigh",
    "merge_config",
    "numeric_values",
    "pearson",
    "performance_metrics",
    "principal_components",
    "profile_column",
    "recommended_sampling",
    "sample_series",
]
