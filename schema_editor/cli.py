"""
Command line front-end for the schema editor.

Usage:
  python -m schema_editor infer            # reads file.json, prints schema to stdout
  echo '[{"a": 1}]' | python -m schema_editor infer --title Item
  python -m schema_editor normalize -i schema.json --require-all
  python -m schema_editor edit -i schema.json --ops ops.json -o out.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, List, Optional, Sequence

from .config import ConfigError, load_config
from .editor import SchemaEditor
from .inference import infer_schema
from .paths import PathError

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_INPUT = "file.json"
DEFAULT_SCHEMA_INPUT = "schema.json"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _reads_stdin(input_path: str, default: str) -> bool:
    return input_path == default and not sys.stdin.isatty()


def _read_json(parser: argparse.ArgumentParser, path: str, label: str, from_stdin: bool = False) -> Any:
    """Parse JSON from path (or stdin), turning read errors into usage errors."""
    try:
        if from_stdin:
            return json.load(sys.stdin)
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        parser.error(f"{label.capitalize()} not found: {path}")
    except json.JSONDecodeError as exc:
        source = "stdin" if from_stdin else f"{label} {path}"
        parser.error(f"Invalid JSON in {source}: {exc.msg} (line {exc.lineno}, column {exc.colno})")


def load_input_json(parser: argparse.ArgumentParser, input_path: str, default: str) -> Any:
    return _read_json(parser, input_path, "input file", _reads_stdin(input_path, default))


def load_operations(parser: argparse.ArgumentParser, ops_path: str) -> List[dict]:
    operations = _read_json(parser, ops_path, "operations file")
    if isinstance(operations, dict):
        operations = [operations]
    if not isinstance(operations, list) or not all(isinstance(op, dict) for op in operations):
        parser.error(f"Operations file {ops_path} must hold an object or an array of objects")
    return operations


def write_output(schema: Any, output: Optional[str], minify: bool) -> None:
    if minify:
        text = json.dumps(schema, ensure_ascii=False, sort_keys=False, separators=(",", ":"))
    else:
        text = json.dumps(schema, indent=2, ensure_ascii=False, sort_keys=False)

    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text + "\n")
    else:
        print(text)


def _add_output_flags(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("-o", "--output", default=None, help="Output schema file (default: stdout)")
    sub.add_argument("--minify", action="store_true", help="Print compact/minified JSON output")


def _add_required_flags(sub: argparse.ArgumentParser) -> None:
    group = sub.add_mutually_exclusive_group()
    group.add_argument(
        "--require-all",
        dest="require",
        action="store_const",
        const=True,
        default=None,
        help="Mark every property of every object as required",
    )
    group.add_argument(
        "--require-none",
        dest="require",
        action="store_const",
        const=False,
        help="Remove 'required' from every object",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schema-editor",
        description="Infer, normalize and edit JSON Schema documents",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level for diagnostics on stderr (default: WARNING)",
    )
    parser.add_argument(
        "--config",
        default=None,
        metavar="CONFIG_FILE",
        help="Editor config JSON ({'format': [...], 'mock': [...]}) used to check 'format' values",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    infer = commands.add_parser("infer", help="Infer a schema from a JSON sample")
    infer.add_argument(
        "-i", "--input", default=DEFAULT_SAMPLE_INPUT, help=f"Input JSON file (default: {DEFAULT_SAMPLE_INPUT})"
    )
    infer.add_argument("--title", default=None, help="Title for the inferred schema")
    _add_output_flags(infer)

    normalize = commands.add_parser("normalize", help="Fill in implied schema defaults")
    normalize.add_argument(
        "-i", "--input", default=DEFAULT_SCHEMA_INPUT, help=f"Input schema file (default: {DEFAULT_SCHEMA_INPUT})"
    )
    _add_required_flags(normalize)
    _add_output_flags(normalize)

    edit = commands.add_parser("edit", help="Apply a list of edit operations to a schema")
    edit.add_argument(
        "-i", "--input", default=DEFAULT_SCHEMA_INPUT, help=f"Input schema file (default: {DEFAULT_SCHEMA_INPUT})"
    )
    edit.add_argument(
        "--ops",
        required=True,
        metavar="OPS_FILE",
        help='JSON array of operations, e.g. [{"op": "rename", "properties_path": "properties", ...}]',
    )
    _add_required_flags(edit)
    _add_output_flags(edit)
    return parser


def _unknown_formats(schema: Any, allowed: Sequence[str]) -> List[str]:
    found: List[str] = []
    if not isinstance(schema, dict):
        return found
    fmt = schema.get("format")
    if isinstance(fmt, str) and fmt not in allowed:
        found.append(fmt)
    for prop in (schema.get("properties") or {}).values():
        found.extend(_unknown_formats(prop, allowed))
    found.extend(_unknown_formats(schema.get("items"), allowed))
    return found


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = None
    if args.config:
        try:
            config = load_config(args.config)
        except FileNotFoundError:
            parser.error(f"Config file not found: {args.config}")
        except ConfigError as exc:
            parser.error(str(exc))

    if args.command == "infer":
        data = load_input_json(parser, args.input, DEFAULT_SAMPLE_INPUT)
        write_output(infer_schema(data, args.title), args.output, args.minify)
        return

    document = load_input_json(parser, args.input, DEFAULT_SCHEMA_INPUT)
    if not isinstance(document, dict):
        parser.error(f"Schema in {args.input} must be a JSON object")
    editor = SchemaEditor(document)

    if args.command == "edit":
        operations = load_operations(parser, args.ops)
        for idx, operation in enumerate(operations):
            try:
                editor.apply_operation(operation)
            except (PathError, ValueError, TypeError) as exc:
                parser.error(f"operation {idx} ({operation.get('op')!r}) failed: {exc}")

    if args.require is not None:
        editor.set_all_required(args.require)

    if config is not None:
        for fmt in _unknown_formats(editor.document, config.format_names()):
            logger.warning("format %r is not in the configured format list", fmt)

    write_output(editor.document, args.output, args.minify)


if __name__ == "__main__":
    main()
