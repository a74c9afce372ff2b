import io
import json
import os
import sys
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from tempfile import TemporaryDirectory
import unittest
from unittest.mock import patch

from schema_editor import cli
from schema_editor.inference import infer_schema

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class FakeStdin(io.StringIO):
    def __init__(self, text: str, *, is_tty: bool):
        super().__init__(text)
        self._is_tty = is_tty

    def isatty(self):
        return self._is_tty


def run_main(argv, stdin=None):
    buf = io.StringIO()
    with patch.object(sys, "argv", ["schema-editor", *argv]):
        with patch.object(sys, "stdin", stdin or FakeStdin("", is_tty=True)):
            with redirect_stdout(buf):
                cli.main()
    return buf.getvalue()


def run_main_error(testcase, argv, stdin=None):
    err = io.StringIO()
    with testcase.assertRaises(SystemExit) as cm:
        with redirect_stderr(err):
            run_main(argv, stdin)
    testcase.assertEqual(cm.exception.code, 2)
    return err.getvalue()


class TestInferCommand(unittest.TestCase):
    def test_infer_reads_piped_stdin(self):
        stdin = FakeStdin(json.dumps([{"a": 1}, {"a": 2}]), is_tty=False)
        output = json.loads(run_main(["infer"], stdin))
        self.assertEqual(output["items"]["required"], ["a"])

    def test_infer_with_title(self):
        stdin = FakeStdin(json.dumps([1, 2]), is_tty=False)
        output = json.loads(run_main(["infer", "--title", "Score"], stdin))
        self.assertEqual(output["title"], "Score Set")
        self.assertEqual(output["items"], {"type": "number", "title": "Score"})

    def test_infer_prefers_explicit_input_file_over_stdin(self):
        with TemporaryDirectory() as tmpdir:
            input_path = Path(tmpdir) / "input.json"
            input_path.write_text(json.dumps({"from_file": 1}), encoding="utf-8")
            stdin = FakeStdin(json.dumps({"from_stdin": True}), is_tty=False)
            output = json.loads(run_main(["infer", "-i", str(input_path)], stdin))
            self.assertIn("from_file", output["properties"])
            self.assertNotIn("from_stdin", output["properties"])

    def test_infer_output_file_minified(self):
        with TemporaryDirectory() as tmpdir:
            input_path = Path(tmpdir) / "input.json"
            output_path = Path(tmpdir) / "schema.json"
            input_path.write_text(json.dumps(["x"]), encoding="utf-8")
            printed = run_main(["infer", "-i", str(input_path), "-o", str(output_path), "--minify"])

            self.assertEqual(printed, "")
            raw = output_path.read_text(encoding="utf-8")
            self.assertEqual(raw, '{"type":"array","items":{"type":"string"}}\n')

    def test_infer_missing_default_file_prints_friendly_error(self):
        with TemporaryDirectory() as tmpdir:
            old_cwd = os.getcwd()
            try:
                os.chdir(tmpdir)
                err = run_main_error(self, ["infer"])
            finally:
                os.chdir(old_cwd)
        self.assertIn("Input file not found: file.json", err)

    def test_infer_invalid_json_from_stdin_prints_friendly_error(self):
        err = run_main_error(self, ["infer"], FakeStdin("{invalid-json", is_tty=False))
        self.assertIn("Invalid JSON in stdin:", err)
        self.assertIn("line 1, column 2", err)


class TestNormalizeCommand(unittest.TestCase):
    def test_normalize_fills_defaults(self):
        stdin = FakeStdin(json.dumps({"properties": {"list": {"type": "array"}}}), is_tty=False)
        output = json.loads(run_main(["normalize"], stdin))
        self.assertEqual(
            output,
            {"type": "object", "properties": {"list": {"type": "array", "items": {"type": "string"}}}},
        )

    def test_normalize_require_all(self):
        schema = {"type": "object", "properties": {"a": {"type": "string"}, "b": {"type": "object", "properties": {"c": {}}}}}
        stdin = FakeStdin(json.dumps(schema), is_tty=False)
        output = json.loads(run_main(["normalize", "--require-all"], stdin))
        self.assertEqual(output["required"], ["a", "b"])
        self.assertEqual(output["properties"]["b"]["required"], ["c"])

    def test_normalize_require_none(self):
        schema = {"type": "object", "properties": {"a": {"type": "string"}}, "required": ["a"]}
        stdin = FakeStdin(json.dumps(schema), is_tty=False)
        output = json.loads(run_main(["normalize", "--require-none"], stdin))
        self.assertNotIn("required", output)

    def test_normalize_rejects_non_object_schema(self):
        err = run_main_error(self, ["normalize"], FakeStdin("[1]", is_tty=False))
        self.assertIn("must be a JSON object", err)

    def test_normalize_warns_about_unconfigured_formats(self):
        with TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "config.json"
            config_path.write_text(json.dumps({"format": ["email"]}), encoding="utf-8")
            schema = {"type": "object", "properties": {"a": {"type": "string", "format": "uuid"}}}
            stdin = FakeStdin(json.dumps(schema), is_tty=False)
            with self.assertLogs("schema_editor.cli", level="WARNING") as logs:
                run_main(["--config", str(config_path), "normalize"], stdin)
        self.assertTrue(any("'uuid'" in line for line in logs.output))

    def test_missing_config_file_prints_friendly_error(self):
        err = run_main_error(self, ["--config", "does-not-exist.json", "normalize"])
        self.assertIn("Config file not found", err)


class TestEditCommand(unittest.TestCase):
    def _write(self, tmpdir, name, data):
        path = Path(tmpdir) / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return str(path)

    def test_edit_applies_operations_in_order(self):
        with TemporaryDirectory() as tmpdir:
            schema_path = self._write(
                tmpdir,
                "schema.json",
                {"type": "object", "properties": {"a": {"type": "string"}}, "required": ["a"]},
            )
            ops_path = self._write(
                tmpdir,
                "ops.json",
                [
                    {"op": "rename", "properties_path": "properties", "old_name": "a", "new_name": "name"},
                    {"op": "add_sibling_field", "properties_path": "properties", "after": "name"},
                    {"op": "set_value", "path": "properties.name.description", "value": "Display name"},
                    {"op": "set_type", "path": "properties.field_1", "new_type": "integer"},
                ],
            )
            output = json.loads(run_main(["edit", "-i", schema_path, "--ops", ops_path]))

        self.assertEqual(list(output["properties"]), ["name", "field_1"])
        self.assertEqual(output["properties"]["name"]["description"], "Display name")
        self.assertEqual(output["properties"]["field_1"], {"type": "integer"})
        self.assertEqual(output["required"], ["name", "field_1"])

    def test_edit_accepts_single_operation_object(self):
        with TemporaryDirectory() as tmpdir:
            schema_path = self._write(tmpdir, "schema.json", {"type": "object", "properties": {"a": {}}})
            ops_path = self._write(tmpdir, "ops.json", {"op": "delete_field", "path": "properties.a"})
            output = json.loads(run_main(["edit", "-i", schema_path, "--ops", ops_path]))
        self.assertEqual(output["properties"], {})

    def test_edit_reports_failed_operation(self):
        with TemporaryDirectory() as tmpdir:
            schema_path = self._write(tmpdir, "schema.json", {"type": "object", "properties": {}})
            ops_path = self._write(tmpdir, "ops.json", [{"op": "delete_field", "path": "properties.missing"}])
            err = run_main_error(self, ["edit", "-i", schema_path, "--ops", ops_path])
        self.assertIn("operation 0 ('delete_field') failed", err)

    def test_edit_reports_unknown_operation(self):
        with TemporaryDirectory() as tmpdir:
            schema_path = self._write(tmpdir, "schema.json", {"type": "object", "properties": {}})
            ops_path = self._write(tmpdir, "ops.json", [{"op": "explode"}])
            err = run_main_error(self, ["edit", "-i", schema_path, "--ops", ops_path])
        self.assertIn("unknown operation 'explode'", err)

    def test_edit_rejects_malformed_operations_file(self):
        with TemporaryDirectory() as tmpdir:
            schema_path = self._write(tmpdir, "schema.json", {"type": "object", "properties": {}})
            ops_path = self._write(tmpdir, "ops.json", ["not an object"])
            err = run_main_error(self, ["edit", "-i", schema_path, "--ops", ops_path])
        self.assertIn("must hold an object or an array of objects", err)

    def test_edit_missing_operations_file_prints_friendly_error(self):
        with TemporaryDirectory() as tmpdir:
            schema_path = self._write(tmpdir, "schema.json", {"type": "object", "properties": {}})
            missing = str(Path(tmpdir) / "ops.json")
            err = run_main_error(self, ["edit", "-i", schema_path, "--ops", missing])
        self.assertIn(f"Operations file not found: {missing}", err)

    def test_edit_invalid_operations_json_names_the_file(self):
        with TemporaryDirectory() as tmpdir:
            schema_path = self._write(tmpdir, "schema.json", {"type": "object", "properties": {}})
            ops_path = Path(tmpdir) / "ops.json"
            ops_path.write_text("[{", encoding="utf-8")
            err = run_main_error(self, ["edit", "-i", schema_path, "--ops", str(ops_path)])
        self.assertIn(f"Invalid JSON in operations file {ops_path}:", err)

    def test_invalid_input_file_names_the_file(self):
        with TemporaryDirectory() as tmpdir:
            schema_path = Path(tmpdir) / "schema.json"
            schema_path.write_text("{oops", encoding="utf-8")
            err = run_main_error(self, ["normalize", "-i", str(schema_path)])
        self.assertIn(f"Invalid JSON in input file {schema_path}:", err)
        self.assertIn("line 1, column 2", err)


class TestFixtureDrivenSchemaInference(unittest.TestCase):
    CASES = [
        "user_profile",
        "events_mixed_array",
        "optional_keys_objects",
        "deep_nested_collections",
        "mixed_scalar_array",
    ]

    def _load_json(self, path: Path):
        return json.loads(path.read_text(encoding="utf-8"))

    def test_infer_schema_matches_expected_from_fixtures(self):
        for case in self.CASES:
            with self.subTest(case=case):
                data = self._load_json(FIXTURES_DIR / f"{case}.input.json")
                expected_schema = self._load_json(FIXTURES_DIR / f"{case}.expected_schema.json")
                self.assertEqual(infer_schema(data), expected_schema)

    def test_main_generates_expected_schema_from_fixture_files(self):
        for case in self.CASES:
            with self.subTest(case=case):
                input_path = FIXTURES_DIR / f"{case}.input.json"
                expected_schema = self._load_json(FIXTURES_DIR / f"{case}.expected_schema.json")
                actual_schema = json.loads(run_main(["infer", "-i", str(input_path)]))
                self.assertEqual(actual_schema, expected_schema)


if __name__ == "__main__":
    unittest.main()
