from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

from jsonschema import ValidationError

from .dataset_io import DataAccessor, DatasetSnapshot
from .errors import InvalidConfiguration, InvalidSelection, UnsupportedColumnType
from .plugin_manager import PluginDiscoveryError, PluginManager, PluginSpec
from .stat_plugins.budget import BudgetTimer
from .stat_plugins.config import merge_config
from .stat_plugins.sampling import performance_metrics
from .types import INDEX_AXIS, AnalysisContext, AnalysisRequest, AnalysisResult, Column


def _discard(msg: str) -> None:
    return None


class Pipeline:
    """Validates a request, snapshots its rows and dispatches to the analysis plugin."""

    def __init__(
        self,
        accessor: DataAccessor,
        plugins_dir: Path | None = None,
        logger: Callable[[str], None] | None = None,
    ) -> None:
        self.accessor = accessor
        self.manager = PluginManager(plugins_dir)
        self.logger = logger or _discard
        self._specs: dict[str, PluginSpec] = {
            spec.analysis: spec for spec in self.manager.discover()
        }
        for error in self.manager.discovery_errors:
            self.logger(f"DISCOVERY_ERROR plugin_id={error.plugin_id} message={error.message}")
        self._plugins: dict[str, Any] = {}

    @property
    def discovery_errors(self) -> list[PluginDiscoveryError]:
        return list(self.manager.discovery_errors)

    def analyses(self) -> list[dict[str, Any]]:
        return [self._specs[key].describe() for key in sorted(self._specs)]

    def spec_for(self, analysis_type: str) -> PluginSpec:
        spec = self._specs.get(analysis_type)
        if spec is None:
            raise InvalidSelection(
                f"Unknown analysis type: {analysis_type!r} (available: {sorted(self._specs)})"
            )
        return spec

    def _plugin(self, spec: PluginSpec) -> Any:
        if spec.plugin_id not in self._plugins:
            self._plugins[spec.plugin_id] = self.manager.load_plugin(spec)
        return self._plugins[spec.plugin_id]

    def _validate_selection(self, spec: PluginSpec, request: AnalysisRequest) -> dict[str, Column]:
        selected = list(request.columns)
        count = len(selected)
        if count < spec.min_columns or (spec.max_columns is not None and count > spec.max_columns):
            upper = spec.max_columns if spec.max_columns is not None else "unbounded"
            raise InvalidSelection(
                f"{spec.analysis} needs between {spec.min_columns} and {upper} columns, got {count}",
                min_columns=spec.min_columns,
                max_columns=spec.max_columns,
            )
        if len(set(selected)) != count:
            raise InvalidSelection("Columns must not repeat within a selection")

        info = {column.name: column for column in self.accessor.get_column_info(request.table)}
        for name in selected:
            if name not in info:
                raise InvalidSelection(f"Unknown column: {name!r}")
            if info[name].type not in spec.column_types:
                raise UnsupportedColumnType(name, info[name].type, spec.column_types)

        resolved = {name: info[name] for name in selected}
        if not spec.accepts_x_axis:
            return resolved
        if request.x_axis is None:
            if spec.x_axis_required:
                raise InvalidSelection(f"{spec.analysis} needs an x-axis")
            return resolved
        if request.x_axis == INDEX_AXIS:
            if INDEX_AXIS not in spec.x_axis_types:
                raise InvalidSelection(f"{spec.analysis} does not accept the row index as x-axis")
            return resolved
        if request.x_axis not in info:
            raise InvalidSelection(f"Unknown x-axis column: {request.x_axis!r}")
        x_column = info[request.x_axis]
        accepted = [t for t in spec.x_axis_types if t != INDEX_AXIS]
        if x_column.type not in accepted:
            raise UnsupportedColumnType(x_column.name, x_column.type, accepted)
        resolved[x_column.name] = x_column
        return resolved

    def _resolve_settings(self, spec: PluginSpec, request: AnalysisRequest) -> dict[str, Any]:
        options = dict(request.options or {})
        if request.algorithm is not None:
            options["algorithm"] = request.algorithm
        try:
            return self.manager.resolve_config(spec, merge_config(spec.defaults, options))
        except ValidationError as exc:
            raise InvalidConfiguration(f"Invalid options for {spec.analysis}: {exc.message}") from exc

    def run(self, request: AnalysisRequest) -> AnalysisResult:
        spec = self.spec_for(request.analysis_type)
        column_info = self._validate_selection(spec, request)
        settings = self._resolve_settings(spec, request)
        plugin = self._plugin(spec)

        timer = BudgetTimer(settings.get("time_budget_ms"))
        fetch = list(column_info)
        rows = self.accessor.get_rows(request.table, fetch, request.filter_predicate)
        snapshot = DatasetSnapshot.from_rows(rows, [column_info[name] for name in fetch])

        ctx = AnalysisContext(
            request=request,
            snapshot=snapshot,
            settings=settings,
            logger=self.logger,
            column_info=column_info,
        )
        self.logger(
            f"START plugin_id={spec.plugin_id} rows={len(snapshot)} cols={len(request.columns)}"
        )
        result = plugin.run(ctx)
        if result.status == "empty":
            self.logger(f"SKIP reason={result.summary}")

        self.manager.validate_output(spec, result.payload)

        processed = result.sampling_info.sampled_size if result.sampling_info else len(snapshot)
        result.performance_metrics = performance_metrics(len(snapshot), processed, timer.elapsed_ms())
        result.debug.setdefault("plugin_id", spec.plugin_id)
        result.debug.setdefault("plugin_version", spec.version)
        if timer.exceeded():
            self.logger(
                f"BUDGET exceeded plugin_id={spec.plugin_id} budget_ms={settings.get('time_budget_ms')} "
                f"overrun_ms={timer.overrun_ms():.2f}"
            )
        self.logger(
            f"END runtime_ms={result.performance_metrics.processing_time_ms:.2f} status={result.status}"
        )
        return result
