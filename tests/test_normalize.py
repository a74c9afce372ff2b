import unittest

from schema_editor import normalize


class TestNormalizeSchema(unittest.TestCase):
    def test_missing_type_with_properties_becomes_object(self):
        schema = normalize.normalize_schema({"properties": {"a": {"type": "string"}}})
        self.assertEqual(schema["type"], "object")

    def test_missing_type_without_properties_becomes_string(self):
        self.assertEqual(normalize.normalize_schema({"title": "x"}), {"title": "x", "type": "string"})

    def test_object_gets_empty_properties(self):
        self.assertEqual(
            normalize.normalize_schema({"type": "object"}),
            {"type": "object", "properties": {}},
        )

    def test_array_gets_default_items(self):
        self.assertEqual(
            normalize.normalize_schema({"type": "array"}),
            {"type": "array", "items": {"type": "string"}},
        )

    def test_array_items_always_normalized(self):
        schema = normalize.normalize_schema({"type": "array", "items": {"description": "d"}})
        self.assertEqual(schema["items"], {"description": "d", "type": "string"})

    def test_scalar_properties_left_untyped(self):
        schema = normalize.normalize_schema(
            {"type": "object", "properties": {"loose": {"title": "no type"}}}
        )
        self.assertEqual(schema["properties"]["loose"], {"title": "no type"})

    def test_container_properties_deep_normalized(self):
        schema = normalize.normalize_schema(
            {
                "type": "object",
                "properties": {
                    "user": {"properties": {"tags": {"type": "array"}}},
                    "list": {"type": "array", "items": {"type": "object"}},
                },
            }
        )
        user = schema["properties"]["user"]
        self.assertEqual(user["type"], "object")
        self.assertEqual(user["properties"]["tags"]["items"], {"type": "string"})
        self.assertEqual(schema["properties"]["list"]["items"], {"type": "object", "properties": {}})

    def test_one_of_variant_set_left_untyped(self):
        schema = normalize.normalize_schema({"oneOf": [{"type": "number"}, {"type": "array"}]})
        self.assertNotIn("type", schema)
        self.assertEqual(schema["oneOf"][1], {"type": "array", "items": {"type": "string"}})

    def test_does_not_mutate_input(self):
        original = {"type": "object", "properties": {"a": {"type": "array"}}}
        normalize.normalize_schema(original)
        self.assertEqual(original, {"type": "object", "properties": {"a": {"type": "array"}}})

    def test_idempotent(self):
        source = {
            "title": "root",
            "properties": {
                "a": {"type": "array", "items": {"properties": {"b": {}}}},
                "c": {"description": "plain"},
                "d": {"type": "object"},
            },
        }
        once = normalize.normalize_schema(source)
        self.assertEqual(normalize.normalize_schema(once), once)


class TestDefaultSchema(unittest.TestCase):
    def test_default_shapes(self):
        self.assertEqual(normalize.default_schema("array"), {"type": "array", "items": {"type": "string"}})
        self.assertEqual(normalize.default_schema("object"), {"type": "object", "properties": {}})
        self.assertEqual(normalize.default_schema("integer"), {"type": "integer"})

    def test_default_schema_returns_fresh_copies(self):
        first = normalize.default_schema("object")
        first["properties"]["x"] = {}
        self.assertEqual(normalize.default_schema("object")["properties"], {})

    def test_unknown_type_raises(self):
        with self.assertRaises(ValueError):
            normalize.default_schema("date")


if __name__ == "__main__":
    unittest.main()
