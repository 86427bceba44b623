from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Callable

import pandas as pd
import yaml

from explorer_analytics.core.dataset_io import FrameAccessor
from explorer_analytics.core.errors import AnalysisError
from explorer_analytics.core.pipeline import Pipeline
from explorer_analytics.core.plugin_manager import PluginManager
from explorer_analytics.core.stat_plugins import infer_column_types, inject_missing
from explorer_analytics.core.types import COLUMN_TYPES, AnalysisRequest
from explorer_analytics.core.utils import json_dumps, resolve_env_placeholders, write_json

# Table name the CLI registers its single input file under.
INPUT_TABLE = "input"


def load_settings(path: str | None) -> dict[str, Any]:
    if not path:
        return {}
    content = Path(path).read_text(encoding="utf-8")
    if path.endswith(".json"):
        data = json.loads(content)
    else:
        data = yaml.safe_load(content)
    return resolve_env_placeholders(data or {})


def load_table(path: str) -> pd.DataFrame | list[dict[str, Any]]:
    """CSV becomes a DataFrame; JSON must hold a list of row objects.

    JSON rows are kept as dicts so that absent keys stay absent.
    """

    p = Path(path)
    if not p.exists():
        raise SystemExit(f"Input not found: {path}")
    suffix = p.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(p)
    if suffix == ".json":
        rows = json.loads(p.read_text(encoding="utf-8"))
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            raise SystemExit(f"Expected a JSON array of objects in {path}")
        return rows
    raise SystemExit(f"Unsupported input format: {suffix or path}")


def parse_types(text: str | None) -> dict[str, str]:
    if not text:
        return {}
    declared: dict[str, str] = {}
    for item in text.split(","):
        if not item.strip():
            continue
        name, sep, column_type = item.partition("=")
        column_type = column_type.strip().lower()
        if not sep or column_type not in COLUMN_TYPES:
            raise SystemExit(
                f"Invalid --types entry {item!r}; use name=type with type in {sorted(COLUMN_TYPES)}"
            )
        declared[name.strip()] = column_type
    return declared


def make_logger(log_file: str | None, verbose: bool) -> Callable[[str], None]:
    log_path = Path(log_file) if log_file else None

    def logger(msg: str) -> None:
        if log_path is not None:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            with log_path.open("a", encoding="utf-8") as handle:
                handle.write(msg + "\n")
        if verbose:
            print(msg, file=sys.stderr)

    return logger


def cmd_list() -> None:
    pipeline = Pipeline(FrameAccessor({}))
    for item in pipeline.analyses():
        upper = item["maxColumns"] if item["maxColumns"] is not None else "*"
        line = (
            f"{item['analysis']}: {item['name']} ({item['plugin']}) "
            f"columns={item['minColumns']}..{upper} types={','.join(item['columnTypes'])}"
        )
        if item["xAxisTypes"]:
            need = "required" if item["xAxisRequired"] else "optional"
            line += f" x-axis={','.join(item['xAxisTypes'])} ({need})"
        print(line)


def cmd_plugins_validate(plugin_id: str | None = None) -> None:
    manager = PluginManager()
    specs = manager.discover()
    failures = [
        f"{err.plugin_id}: discovery error: {err.message}" for err in manager.discovery_errors
    ]

    selected = specs
    if plugin_id:
        selected = [spec for spec in specs if spec.plugin_id == plugin_id]
        if not selected:
            raise SystemExit(f"Unknown plugin id: {plugin_id}")

    for spec in selected:
        try:
            manager.resolve_config(spec, spec.defaults)
            plugin = manager.load_plugin(spec)
            if not hasattr(plugin, "run"):
                raise TypeError("Missing run() method")
        except Exception as exc:
            failures.append(f"{spec.plugin_id}: {type(exc).__name__}: {exc}")

    for line in sorted(failures):
        print(line)
    if failures:
        raise SystemExit(1)
    print("OK")


def cmd_analyze(
    input_path: str,
    analysis: str,
    columns: str,
    x_axis: str | None,
    algorithm: str | None,
    settings_path: str | None,
    types: str | None,
    log_file: str | None,
    verbose: bool,
) -> None:
    table = load_table(input_path)
    accessor = FrameAccessor({INPUT_TABLE: table}, {INPUT_TABLE: parse_types(types)})
    pipeline = Pipeline(accessor, logger=make_logger(log_file, verbose))
    request = AnalysisRequest(
        analysis_type=analysis,
        table=INPUT_TABLE,
        columns=[c.strip() for c in columns.split(",") if c.strip()],
        x_axis=x_axis,
        algorithm=algorithm,
        options=load_settings(settings_path),
    )
    try:
        result = pipeline.run(request)
    except AnalysisError as exc:
        print(str(exc), file=sys.stderr)
        raise SystemExit(2)
    print(json_dumps(result.to_dict()))


def cmd_simulate(
    input_path: str,
    output_path: str,
    rate: float,
    seed: int,
    *,
    include_nulls: bool = True,
    include_empty: bool = True,
    include_zero: bool = False,
    include_undefined: bool = False,
    exclude: str | None = None,
) -> None:
    table = load_table(input_path)
    if isinstance(table, pd.DataFrame):
        column_types = infer_column_types(table)
        rows = FrameAccessor({INPUT_TABLE: table}).get_rows(INPUT_TABLE, list(column_types))
    else:
        rows = table
        column_types = infer_column_types(pd.DataFrame.from_records(rows))
    try:
        out_rows = inject_missing(
            rows,
            column_types,
            rate,
            include_nulls=include_nulls,
            include_empty=include_empty,
            include_zero=include_zero,
            include_undefined=include_undefined,
            seed=seed,
            exclude=[c.strip() for c in (exclude or "").split(",") if c.strip()],
        )
    except ValueError as exc:
        raise SystemExit(str(exc))

    dest = Path(output_path)
    dest.parent.mkdir(parents=True, exist_ok=True)
    if dest.suffix.lower() == ".csv":
        pd.DataFrame.from_records(out_rows, columns=list(column_types)).to_csv(dest, index=False)
    else:
        write_json(dest, [_json_row(row) for row in out_rows])
    print(str(dest))


def _json_row(row: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in row.items():
        if isinstance(value, pd.Timestamp):
            value = value.isoformat()
        out[key] = value
    return out


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="explorer-analytics")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list")

    plugins_parser = sub.add_parser("plugins")
    plugins_sub = plugins_parser.add_subparsers(dest="plugins_command", required=True)
    plugins_validate_parser = plugins_sub.add_parser("validate")
    plugins_validate_parser.add_argument("--plugin-id")

    analyze_parser = sub.add_parser("analyze")
    analyze_parser.add_argument("--input", required=True)
    analyze_parser.add_argument("--analysis", required=True)
    analyze_parser.add_argument("--columns", required=True)
    analyze_parser.add_argument("--x-axis")
    analyze_parser.add_argument("--algorithm")
    analyze_parser.add_argument("--settings")
    analyze_parser.add_argument("--types")
    analyze_parser.add_argument("--log-file")
    analyze_parser.add_argument("--verbose", action="store_true")

    simulate_parser = sub.add_parser("simulate")
    simulate_parser.add_argument("--input", required=True)
    simulate_parser.add_argument("--output", required=True)
    simulate_parser.add_argument("--rate", type=float, required=True)
    simulate_parser.add_argument("--seed", type=int, default=1337)
    simulate_parser.add_argument("--no-nulls", action="store_true")
    simulate_parser.add_argument("--no-empty", action="store_true")
    simulate_parser.add_argument("--zeros", action="store_true")
    simulate_parser.add_argument("--undefined", action="store_true")
    simulate_parser.add_argument("--exclude")

    args = parser.parse_args(argv)

    if args.command == "list":
        cmd_list()
    elif args.command == "plugins":
        if args.plugins_command == "validate":
            cmd_plugins_validate(args.plugin_id)
        else:
            raise SystemExit(2)
    elif args.command == "analyze":
        cmd_analyze(
            args.input,
            args.analysis,
            args.columns,
            args.x_axis,
            args.algorithm,
            args.settings,
            args.types,
            args.log_file,
            bool(args.verbose),
        )
    elif args.command == "simulate":
        cmd_simulate(
            args.input,
            args.output,
            args.rate,
            args.seed,
            include_nulls=not bool(args.no_nulls),
            include_empty=not bool(args.no_empty),
            include_zero=bool(args.zeros),
            include_undefined=bool(args.undefined),
            exclude=args.exclude,
        )
    else:
        raise SystemExit(2)


if __name__ == "__main__":
    main()
