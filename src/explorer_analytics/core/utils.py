from __future__ import annotations

import hashlib
import json
import os
import re
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from .types import UNDEFINED

_FLOAT_PRECISION = 10


def _canonicalize(value: Any) -> Any:
    if isinstance(value, (np.floating, float)):
        return round(float(value), _FLOAT_PRECISION)
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, dict):
        return {key: _canonicalize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonicalize(item) for item in value]
    return value


def json_dumps(data: Any) -> str:
    return json.dumps(
        _canonicalize(data), ensure_ascii=False, indent=2, sort_keys=True
    )


def stable_hash(text: str) -> int:
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
    return int(digest[:8], 16)


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json_dumps(data), encoding="utf-8")


_ENV_PLACEHOLDER_RE = re.compile(r"^\$\{ENV:([A-Z0-9_]+)\}$")


def resolve_env_placeholders(value: Any) -> Any:
    """Resolve `${ENV:NAME}` strings to their environment variable values."""

    if isinstance(value, str):
        match = _ENV_PLACEHOLDER_RE.match(value.strip())
        if not match:
            return value
        name = match.group(1)
        if name not in os.environ:
            raise ValueError(f"Missing environment variable: {name}")
        return os.environ[name]
    if isinstance(value, list):
        return [resolve_env_placeholders(item) for item in value]
    if isinstance(value, dict):
        return {k: resolve_env_placeholders(v) for k, v in value.items()}
    return value


def default_plugins_dir() -> Path:
    override = os.environ.get("EXPLORER_ANALYTICS_PLUGINS_DIR", "").strip()
    if override:
        return Path(override)
    return Path(__file__).resolve().parent.parent / "plugins"


def jsonable(value: Any) -> Any:
    """Scalar snapshot value as a JSON-safe value; missing markers become None."""

    if value is None or value is UNDEFINED:
        return None
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.isoformat()
    if isinstance(value, (np.bool_, bool)):
        return bool(value)
    if isinstance(value, (np.integer, int)):
        return int(value)
    if isinstance(value, (np.floating, float)):
        return None if not np.isfinite(value) else float(value)
    return value
