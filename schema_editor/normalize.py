"""
Fill in the structural defaults a schema node implies, so that every node is
self-describing before it is displayed or edited.
"""

from __future__ import annotations

from copy import deepcopy
from typing import Any, Dict, List

SCHEMA_TYPES: List[str] = ["string", "number", "integer", "boolean", "array", "object"]
CONTAINER_TYPES = ("object", "array")

DEFAULT_SCHEMA: Dict[str, Dict[str, Any]] = {
    "string": {"type": "string"},
    "number": {"type": "number"},
    "integer": {"type": "integer"},
    "boolean": {"type": "boolean"},
    "array": {"type": "array", "items": {"type": "string"}},
    "object": {"type": "object", "properties": {}},
}

DEFAULT_DOCUMENT: Dict[str, Any] = {"type": "object", "title": "title", "properties": {}}


def default_schema(schema_type: str) -> Dict[str, Any]:
    """Fresh copy of the canonical shape for schema_type."""
    try:
        return deepcopy(DEFAULT_SCHEMA[schema_type])
    except KeyError:
        raise ValueError(
            f"unsupported schema type {schema_type!r} (expected one of: {', '.join(SCHEMA_TYPES)})"
        ) from None


def _infer_type(schema: Dict[str, Any]) -> Dict[str, Any]:
    if "type" not in schema and isinstance(schema.get("properties"), dict):
        schema = dict(schema)
        schema["type"] = "object"
    return schema


def normalize_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a normalized copy of schema.

    Object nodes always get 'properties', array nodes always get 'items'.
    Only container-typed properties are normalized recursively; scalar
    properties keep whatever shape they have.
    """
    if not isinstance(schema, dict):
        return schema

    out = _infer_type(schema)
    if "type" not in out:
        out = dict(out)
        if isinstance(out.get("oneOf"), list):
            out["oneOf"] = [normalize_schema(variant) for variant in out["oneOf"]]
            return out
        out["type"] = "string"

    if out.get("type") == "object":
        out = dict(out)
        properties = out.get("properties")
        if not isinstance(properties, dict):
            properties = {}
        normalized: Dict[str, Any] = {}
        for key, prop in properties.items():
            if isinstance(prop, dict):
                prop = _infer_type(prop)
                if prop.get("type") in CONTAINER_TYPES:
                    prop = normalize_schema(prop)
            normalized[key] = prop
        out["properties"] = normalized
    elif out.get("type") == "array":
        out = dict(out)
        items = out.get("items")
        if not isinstance(items, dict) or not items:
            items = default_schema("string")
        out["items"] = normalize_schema(items)

    return out
