"""
Infer a JSON Schema from a sample JSON value.

Arrays of objects are reconciled element by element: the property set is the
union of every element's keys and 'required' keeps only the keys that every
element carries. Arrays whose elements have different kinds become a 'oneOf'
variant set.
"""

from __future__ import annotations

import datetime
import json
import logging
import re
from typing import Any, Dict, List, Optional

from .normalize import SCHEMA_TYPES

logger = logging.getLogger(__name__)

OUTPUT_KEYS = ("type", "format", "title", "required", "properties", "items", "oneOf")
TITLE_SET_SUFFIX = " Set"


def json_type(value: Any) -> str:
    """Classify a sample value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, (datetime.datetime, datetime.date)):
        return "date"
    if isinstance(value, re.Pattern):
        return "regexp"
    if callable(value):
        return "function"
    return "unknown"


def property_type(value: Any) -> str:
    t = json_type(value)
    if t in ("date", "regexp", "function"):
        return "string"
    if t == "null" or t in SCHEMA_TYPES:
        return t
    # Fallback (rare)
    return "string"


def property_format(value: Any) -> Optional[str]:
    if json_type(value) == "date":
        return "date-time"
    return None


def merge_types(t1: Any, t2: Any) -> Any:
    """
    Merge JSON Schema 'type' fields, keeping first-seen order.
    Can be a string or a list of strings.
    """
    def to_list(t: Any) -> List[str]:
        if t is None:
            return []
        if isinstance(t, str):
            return [t]
        return list(t)

    merged: List[str] = []
    for t in to_list(t1) + to_list(t2):
        if t not in merged:
            merged.append(t)
    if not merged:
        return None
    if len(merged) == 1:
        return merged[0]
    return merged


def intersect_required(required: Optional[List[str]], sample: Dict[str, Any]) -> List[str]:
    """
    Running intersection: the first object seeds the set, every later one
    drops the keys it does not carry.
    """
    if required is None:
        return list(sample)
    return [key for key in required if key in sample]


def _scalar_schema(value: Any) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": property_type(value)}
    fmt = property_format(value)
    if fmt:
        schema["format"] = fmt
    return schema


def infer_object(value: Dict[str, Any], schema: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Merge the keys of value into schema (a fresh object schema when None)."""
    out: Dict[str, Any] = schema if schema is not None else {}
    # A field first seen as another kind keeps that kind alongside "object".
    out["type"] = merge_types(out.get("type"), "object")
    props: Dict[str, Any] = out.setdefault("properties", {})

    for key, item in value.items():
        t = property_type(item)
        if t == "object":
            props[key] = infer_object(item, props.get(key))
        elif t == "array":
            props[key] = infer_array(item, props.get(key))
        elif key in props:
            # Differing kinds widen the field to a multi-type list.
            props[key]["type"] = merge_types(props[key].get("type"), t)
        else:
            props[key] = _scalar_schema(item)
    return out


def _variant(value: Any) -> Dict[str, Any]:
    t = property_type(value)
    if t == "object":
        return infer_object(value)
    if t == "array":
        return infer_array(value)
    return _scalar_schema(value)


def _append_variants(variants: List[Dict[str, Any]], candidates: List[Dict[str, Any]]) -> None:
    seen = {json.dumps(v, sort_keys=True, default=str) for v in variants}
    for candidate in candidates:
        key = json.dumps(candidate, sort_keys=True, default=str)
        if key not in seen:
            seen.add(key)
            variants.append(candidate)


def infer_array(value: List[Any], schema: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Merge the elements of value into schema (a fresh array schema when None).

    Elements of one kind share a single 'items' schema; mixed kinds turn
    'items' into a 'oneOf' list with one entry per distinct element shape.
    """
    out: Dict[str, Any] = schema if schema is not None else {}
    out["type"] = merge_types(out.get("type"), "array")
    items: Dict[str, Any] = out.get("items") or {}

    if "oneOf" in items:
        _append_variants(items["oneOf"], [_variant(element) for element in value])
        out["items"] = items
        return out

    kinds: List[str] = []
    if isinstance(items.get("type"), str):
        kinds.append(items["type"])
    for element in value:
        t = property_type(element)
        if t not in kinds:
            kinds.append(t)

    if len(kinds) > 1:
        variants: List[Dict[str, Any]] = []
        if items.get("type"):
            variants.append(items)
        _append_variants(variants, [_variant(element) for element in value])
        out["items"] = {"oneOf": variants}
        return out

    if not kinds:
        out["items"] = items
        return out

    kind = kinds[0]
    if kind == "object":
        # An already-merged object without 'required' had an empty intersection.
        required = list(items.get("required", [])) if items.get("type") == "object" else None
        for element in value:
            required = intersect_required(required, element)
            items = infer_object(element, items)
        if required:
            items["required"] = required
        else:
            items.pop("required", None)
    elif kind == "array":
        for element in value:
            items = infer_array(element, items if items.get("type") == "array" else None)
    else:
        items["type"] = kind
        for element in value:
            fmt = property_format(element)
            if fmt:
                items["format"] = fmt
    out["items"] = items
    return out


def to_schema_node(node: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only the inferable keys of an intermediate schema."""
    result: Dict[str, Any] = {}
    for key in OUTPUT_KEYS:
        if key not in node:
            continue
        value = node[key]
        if key == "properties":
            value = {name: to_schema_node(prop) for name, prop in value.items()}
        elif key == "items":
            value = to_schema_node(value) if value else {"type": "string"}
        elif key == "oneOf":
            value = [to_schema_node(variant) for variant in value]
        elif key == "required":
            if not value:
                continue
            value = list(value)
        elif key == "type" and isinstance(value, list):
            value = list(value)
        result[key] = value
    return result


def infer_schema(sample: Any, title: Optional[str] = None) -> Dict[str, Any]:
    """
    Infer a schema describing sample.

    Only object and array samples are inspected deeply; other samples produce
    a bare {'type': ...}, and kinds outside the schema types fall back to
    'object'.
    """
    t = json_type(sample)
    if t in ("date", "regexp", "function"):
        t = "string"
    schema_type = t if t in SCHEMA_TYPES else "object"

    output: Dict[str, Any] = {"type": schema_type}
    if title:
        output["title"] = title

    if t == "object":
        inferred = infer_object(sample)
        output["properties"] = to_schema_node(inferred)["properties"]
    elif t == "array":
        inferred = infer_array(sample)
        output["items"] = to_schema_node(inferred)["items"]
        if title:
            output["items"]["title"] = title
            output["title"] = title + TITLE_SET_SUFFIX

    logger.debug("inferred %s schema from %s sample", schema_type, json_type(sample))
    return output
