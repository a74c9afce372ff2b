"""
Stateful, path-addressed editing of a JSON Schema document.

Every operation builds a new document snapshot (copying only the ancestors of
the changed subtree), swaps it in, and only then notifies subscribers.
"""

from __future__ import annotations

import itertools
import json
import logging
import threading
from copy import deepcopy
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .normalize import CONTAINER_TYPES, DEFAULT_DOCUMENT, default_schema, normalize_schema
from .paths import (
    Path,
    PathError,
    assoc_in,
    dissoc_in,
    get_in,
    has_path,
    join_path,
    parent_path,
    parse_path,
)

logger = logging.getLogger(__name__)

FIELD_NAME_PREFIX = "field_"

Listener = Callable[[Dict[str, Any]], None]


def apply_required(schema: Dict[str, Any], required: bool) -> Dict[str, Any]:
    """
    Return a copy of schema where every object node requires all of its own
    properties (required=True) or none of them (required=False).
    """
    if schema.get("type") == "object" and isinstance(schema.get("properties"), dict):
        out = dict(schema)
        if required:
            out["required"] = list(schema["properties"])
        else:
            out.pop("required", None)
        out["properties"] = {
            key: apply_required(prop, required)
            if isinstance(prop, dict) and prop.get("type") in CONTAINER_TYPES
            else prop
            for key, prop in schema["properties"].items()
        }
        return out
    if schema.get("type") == "array" and isinstance(schema.get("items"), dict):
        out = dict(schema)
        out["items"] = apply_required(schema["items"], required)
        return out
    return schema


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


class SchemaEditor:
    """
    Holds the schema document and the tree-view open/closed map.

    Paths are sequences of keys such as ["properties", "user", "properties", "age"].
    A "properties path" addresses a 'properties' mapping; its parent path
    addresses the object node that owns that mapping and its 'required' list.
    """

    def __init__(self, document: Optional[Dict[str, Any]] = None):
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []
        self._field_numbers = itertools.count(1)
        self.open_state: Dict[str, bool] = {"properties": True}
        source = DEFAULT_DOCUMENT if document is None else document
        self._document: Dict[str, Any] = self._prepare(source)

    @property
    def document(self) -> Dict[str, Any]:
        """Current snapshot. Treat it as read-only; edit through the operations."""
        return self._document

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self._document, indent=indent, ensure_ascii=False)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener(document) after every completed mutation."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _prepare(self, document: Any) -> Dict[str, Any]:
        if not isinstance(document, dict):
            raise TypeError(f"schema document must be a JSON object, got {type(document).__name__}")
        return normalize_schema(deepcopy(document))

    def _commit(self, document: Dict[str, Any]) -> None:
        self._document = document
        for listener in list(self._listeners):
            listener(document)

    def _next_field_name(self, taken: Dict[str, Any]) -> str:
        while True:
            name = f"{FIELD_NAME_PREFIX}{next(self._field_numbers)}"
            if name not in taken:
                return name

    @staticmethod
    def _set_required(doc: Dict[str, Any], properties_path: Path, name: str, required: bool) -> Dict[str, Any]:
        owner = parent_path(properties_path)
        node = get_in(doc, owner)
        current = list(node.get("required") or [])
        if not required and name in current:
            current.remove(name)
            if not current:
                return dissoc_in(doc, owner + ["required"])
            return assoc_in(doc, owner + ["required"], current)
        if required and name not in current:
            current.append(name)
            return assoc_in(doc, owner + ["required"], current)
        return doc

    # -- whole document ---------------------------------------------------

    def replace_document(self, new_root: Dict[str, Any]) -> None:
        with self._lock:
            document = self._prepare(new_root)
            logger.debug("replacing document (root type %s)", document.get("type"))
            self._commit(document)

    def set_all_required(self, required: bool) -> None:
        with self._lock:
            logger.debug("setting required=%s on every object node", required)
            self._commit(apply_required(self._document, bool(required)))

    # -- values and types -------------------------------------------------

    def set_value(self, path: Path, value: Any) -> None:
        """Write value at path, or delete the key there when value is None or ''."""
        with self._lock:
            path = list(path)
            if _is_empty(value):
                if not has_path(self._document, path):
                    get_in(self._document, parent_path(path))
                    return
                logger.debug("deleting %s", join_path(path))
                self._commit(dissoc_in(self._document, path))
            else:
                logger.debug("setting %s", join_path(path))
                self._commit(assoc_in(self._document, path, deepcopy(value)))

    def set_mock(self, path: Path, directive: Optional[str]) -> None:
        self.set_value(list(path) + ["mock"], {"mock": directive} if directive else None)

    def set_type(self, path: Path, new_type: str) -> None:
        """
        Replace the node at path with the default shape for new_type.

        Only 'description' survives a type switch. Setting the type a node
        already has does nothing.
        """
        with self._lock:
            path = list(path)
            node = get_in(self._document, path)
            if node.get("type") == new_type:
                return
            fresh = default_schema(new_type)
            if node.get("description"):
                fresh["description"] = node["description"]
            logger.debug("retyping %s: %s -> %s", join_path(path) or "<root>", node.get("type"), new_type)
            self._commit(assoc_in(self._document, path, fresh))

    # -- fields -----------------------------------------------------------

    def rename(self, properties_path: Path, old_name: str, new_name: str) -> bool:
        """
        Rename a property in place, keeping its position.

        Returns False (and changes nothing) when new_name is already taken.
        A renamed object keeps its tree-view open/closed entry; one that had
        no entry yet starts open.
        """
        with self._lock:
            properties_path = list(properties_path)
            props = get_in(self._document, properties_path)
            if new_name == old_name:
                return False
            if props.get(new_name) is not None:
                logger.debug("rename %s -> %s rejected: name taken", old_name, new_name)
                return False
            if old_name not in props:
                raise PathError(properties_path + [old_name], len(properties_path))

            renamed = {
                (new_name if key == old_name else key): value
                for key, value in props.items()
                if key != new_name
            }
            doc = assoc_in(self._document, properties_path, renamed)

            owner = parent_path(properties_path)
            owner_node = get_in(doc, owner)
            if "required" in owner_node:
                doc = assoc_in(
                    doc,
                    owner + ["required"],
                    [new_name if name == old_name else name for name in owner_node["required"]],
                )

            node = props[old_name]
            if isinstance(node, dict) and "properties" in node:
                old_key = join_path(properties_path + [old_name, "properties"])
                new_key = join_path(properties_path + [new_name, "properties"])
                self.open_state[new_key] = self.open_state.pop(old_key, True)

            logger.debug("renamed %s -> %s under %s", old_name, new_name, join_path(properties_path))
            self._commit(doc)
            return True

    def toggle_required(self, properties_path: Path, name: str, required: bool) -> None:
        with self._lock:
            doc = self._set_required(self._document, list(properties_path), name, bool(required))
            if doc is not self._document:
                self._commit(doc)

    def delete_field(self, path: Path, prune_required: bool = True) -> None:
        """
        Remove the property at path.

        The name is also dropped from the owning node's 'required' list unless
        prune_required is False.
        """
        with self._lock:
            path = list(path)
            get_in(self._document, path)
            doc = dissoc_in(self._document, path)
            if prune_required and len(path) >= 2 and path[-2] == "properties":
                doc = self._set_required(doc, parent_path(path), path[-1], False)
            logger.debug("deleted %s", join_path(path))
            self._commit(doc)

    def add_sibling_field(self, properties_path: Path, after: Optional[str] = None) -> str:
        """
        Insert a generated string field into the mapping at properties_path,
        right after `after` when given, and mark it required.
        """
        with self._lock:
            properties_path = list(properties_path)
            props = get_in(self._document, properties_path)
            if after is not None and after not in props:
                raise PathError(properties_path + [after], len(properties_path))
            name = self._next_field_name(props)

            if after is None:
                updated = dict(props)
                updated[name] = default_schema("string")
            else:
                updated = {}
                for key, value in props.items():
                    updated[key] = value
                    if key == after:
                        updated[name] = default_schema("string")

            doc = assoc_in(self._document, properties_path, updated)
            doc = self._set_required(doc, properties_path, name, True)
            logger.debug("added field %s under %s", name, join_path(properties_path))
            self._commit(doc)
            return name

    def add_child_field(self, properties_path: Path) -> str:
        """Append a generated field to a nested mapping and expand it."""
        with self._lock:
            properties_path = list(properties_path)
            get_in(self._document, parent_path(properties_path))
            props = get_in(self._document, properties_path) if has_path(self._document, properties_path) else {}
            name = self._next_field_name(props)

            updated = dict(props)
            updated[name] = default_schema("string")
            doc = assoc_in(self._document, properties_path, updated)
            doc = self._set_required(doc, properties_path, name, True)
            self.open_state[join_path(properties_path)] = True
            logger.debug("added child field %s under %s", name, join_path(properties_path))
            self._commit(doc)
            return name

    # -- tree-view state --------------------------------------------------

    def toggle_open(self, path: Path, value: Optional[bool] = None) -> bool:
        with self._lock:
            key = join_path(path)
            self.open_state[key] = (not self.open_state.get(key, False)) if value is None else bool(value)
            return self.open_state[key]

    def is_open(self, path: Union[str, Path]) -> bool:
        key = path if isinstance(path, str) else join_path(path)
        return self.open_state.get(key, False)

    # -- scripted edits ---------------------------------------------------

    def apply_operation(self, operation: Dict[str, Any]) -> Any:
        """
        Run one operation given as {'op': <method name>, <argument>: ...}.
        Arguments ending in 'path' may be dotted strings.
        """
        op = operation.get("op")
        if op not in OPERATIONS:
            raise ValueError(f"unknown operation {op!r} (expected one of: {', '.join(OPERATIONS)})")
        kwargs: Dict[str, Any] = {}
        for key, value in operation.items():
            if key == "op":
                continue
            if key.endswith("path") and isinstance(value, str):
                value = parse_path(value)
            kwargs[key] = value
        return getattr(self, op)(**kwargs)

    def apply_operations(self, operations: Sequence[Dict[str, Any]]) -> List[Any]:
        return [self.apply_operation(operation) for operation in operations]


OPERATIONS = (
    "replace_document",
    "set_value",
    "set_mock",
    "set_type",
    "rename",
    "toggle_required",
    "set_all_required",
    "delete_field",
    "add_sibling_field",
    "add_child_field",
    "toggle_open",
)
