from __future__ import annotations

import copy
import importlib
import importlib.util
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validate

from .utils import default_plugins_dir, read_json

PACKAGE_PLUGINS_DIR = Path(__file__).resolve().parent.parent / "plugins"
MANIFEST_SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schemas" / "plugin_manifest.schema.json"


@dataclass
class PluginSpec:
    plugin_id: str
    name: str
    version: str
    analysis: str
    entrypoint: str
    description: str
    min_columns: int
    max_columns: int | None
    column_types: list[str]
    x_axis_types: list[str]
    x_axis_required: bool
    settings: dict[str, Any]
    path: Path
    config_schema: Path
    output_schema: Path

    @property
    def defaults(self) -> dict[str, Any]:
        return copy.deepcopy(self.settings.get("defaults") or {})

    @property
    def accepts_x_axis(self) -> bool:
        return bool(self.x_axis_types)

    def describe(self) -> dict[str, Any]:
        return {
            "analysis": self.analysis,
            "plugin": self.plugin_id,
            "name": self.name,
            "minColumns": self.min_columns,
            "maxColumns": self.max_columns,
            "columnTypes": list(self.column_types),
            "xAxisTypes": list(self.x_axis_types),
            "xAxisRequired": self.accepts_x_axis and self.x_axis_required,
        }


@dataclass(frozen=True)
class PluginDiscoveryError:
    plugin_id: str
    path: Path
    message: str


class PluginManager:
    def __init__(self, plugins_dir: Path | None = None) -> None:
        self.plugins_dir = Path(plugins_dir) if plugins_dir is not None else default_plugins_dir()
        self._manifest_schema: dict[str, Any] | None = None
        self._schema_cache: dict[Path, dict[str, Any]] = {}
        self.discovery_errors: list[PluginDiscoveryError] = []

    def _record_discovery_error(
        self, plugin_id: str, manifest: Path, message: str
    ) -> None:
        self.discovery_errors.append(
            PluginDiscoveryError(
                plugin_id=plugin_id or manifest.parent.name,
                path=manifest,
                message=message,
            )
        )

    def discover(self) -> list[PluginSpec]:
        specs: list[PluginSpec] = []
        self.discovery_errors = []
        manifest_schema = self._load_manifest_schema()
        seen: set[str] = set()
        seen_analyses: set[str] = set()
        for manifest in sorted(self.plugins_dir.glob("*/plugin.yaml")):
            try:
                data = yaml.safe_load(manifest.read_text(encoding="utf-8"))
            except yaml.YAMLError as exc:
                self._record_discovery_error(
                    manifest.parent.name,
                    manifest,
                    f"Invalid YAML: {exc}",
                )
                continue
            if not isinstance(data, dict):
                self._record_discovery_error(
                    manifest.parent.name, manifest, "Invalid manifest payload"
                )
                continue
            plugin_id = str(data.get("id") or manifest.parent.name)
            try:
                validate(instance=data, schema=manifest_schema)
            except ValidationError as exc:
                self._record_discovery_error(
                    plugin_id, manifest, f"Invalid manifest: {exc.message}"
                )
                continue
            if plugin_id in seen:
                self._record_discovery_error(
                    plugin_id, manifest, "Duplicate plugin id"
                )
                continue
            if data["analysis"] in seen_analyses:
                self._record_discovery_error(
                    plugin_id, manifest, f"Duplicate analysis key: {data['analysis']}"
                )
                continue
            config_schema_path = manifest.parent / data["config_schema"]
            output_schema_path = manifest.parent / data["output_schema"]
            if not config_schema_path.exists():
                self._record_discovery_error(
                    plugin_id,
                    manifest,
                    f"Missing config schema: {config_schema_path}",
                )
                continue
            if not output_schema_path.exists():
                self._record_discovery_error(
                    plugin_id,
                    manifest,
                    f"Missing output schema: {output_schema_path}",
                )
                continue
            defaults = data.get("settings", {}).get("defaults", {})
            if defaults is not None:
                try:
                    self.validate_config_schema(config_schema_path, defaults)
                except ValidationError as exc:
                    self._record_discovery_error(
                        plugin_id,
                        manifest,
                        f"Invalid config defaults: {exc.message}",
                    )
                    continue
            columns = data["columns"]
            seen.add(plugin_id)
            seen_analyses.add(data["analysis"])
            specs.append(
                PluginSpec(
                    plugin_id=plugin_id,
                    name=data["name"],
                    version=data["version"],
                    analysis=data["analysis"],
                    entrypoint=data["entrypoint"],
                    description=str(data.get("description", "")),
                    min_columns=int(columns["min"]),
                    max_columns=columns.get("max"),
                    column_types=list(columns.get("types", [])),
                    x_axis_types=list(data.get("x_axis", {}).get("types", [])),
                    x_axis_required=bool(data.get("x_axis", {}).get("required", True)),
                    settings=data.get("settings", {}),
                    path=manifest.parent,
                    config_schema=config_schema_path,
                    output_schema=output_schema_path,
                )
            )
        return specs

    def load_plugin(self, spec: PluginSpec) -> Any:
        module_path, class_name = spec.entrypoint.split(":", 1)
        if module_path.endswith(".py"):
            module_path = module_path[:-3]
        if self.plugins_dir.resolve() == PACKAGE_PLUGINS_DIR:
            module = importlib.import_module(
                f"explorer_analytics.plugins.{spec.plugin_id}.{module_path}"
            )
        else:
            module = _import_from_path(spec.path / f"{module_path}.py", spec.plugin_id)
        return getattr(module, class_name)()

    def resolve_config(self, spec: PluginSpec, config: dict[str, Any]) -> dict[str, Any]:
        """Apply JSONSchema defaults deterministically, then validate."""

        schema = self._load_schema(spec.config_schema)
        resolved: dict[str, Any] = copy.deepcopy(config)
        _apply_jsonschema_defaults(schema, resolved)
        validate(instance=resolved, schema=schema)
        return resolved

    def validate_output(self, spec: PluginSpec, payload: Any) -> None:
        schema = self._load_schema(spec.output_schema)
        validate(instance=payload, schema=schema)

    def _load_schema(self, path: Path) -> dict[str, Any]:
        if path not in self._schema_cache:
            self._schema_cache[path] = read_json(path)
        return self._schema_cache[path]

    def _load_manifest_schema(self) -> dict[str, Any]:
        if self._manifest_schema is None:
            self._manifest_schema = read_json(MANIFEST_SCHEMA_PATH)
        return self._manifest_schema

    def validate_config_schema(self, schema_path: Path, defaults: dict[str, Any]) -> None:
        schema = self._load_schema(schema_path)
        validate(instance=defaults, schema=schema)


def _import_from_path(path: Path, plugin_id: str) -> Any:
    module_name = f"explorer_analytics_external_plugins.{plugin_id}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Unable to load plugin module at {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _apply_jsonschema_defaults(schema: Any, instance: Any) -> Any:
    """Recursively apply `default` values from a JSONSchema into `instance`.

    Handles the subset the plugin config schemas use: object properties with
    defaults, array item schemas and allOf composition.
    """

    if not isinstance(schema, dict):
        return instance

    if instance is None and "default" in schema:
        instance = copy.deepcopy(schema["default"])

    for subschema in schema.get("allOf") or []:
        instance = _apply_jsonschema_defaults(subschema, instance)

    schema_type = schema.get("type")
    if schema_type == "object" and isinstance(instance, dict):
        props = schema.get("properties") or {}
        for key in sorted(props.keys()):
            prop_schema = props.get(key)
            if key not in instance:
                if isinstance(prop_schema, dict) and "default" in prop_schema:
                    instance[key] = copy.deepcopy(prop_schema["default"])
            if key in instance:
                instance[key] = _apply_jsonschema_defaults(prop_schema, instance[key])

    if schema_type == "array" and isinstance(instance, list):
        items_schema = schema.get("items")
        if isinstance(items_schema, dict):
            for idx, value in enumerate(list(instance)):
                instance[idx] = _apply_jsonschema_defaults(items_schema, value)

    return instance
