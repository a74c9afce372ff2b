"""
Key-path addressing inside nested dict/list documents.

Writes never touch the input: they copy the containers along the path and
share every untouched subtree with the original document.
"""

from __future__ import annotations

from typing import Any, Callable, List, Sequence, Union

Key = Union[str, int]
Path = Sequence[Key]

JSONPATH_JOIN_CHAR = "."


class PathError(KeyError):
    """Raised when a key path does not resolve inside a document."""

    def __init__(self, path: Path, depth: int):
        self.path = list(path)
        self.depth = depth
        super().__init__(f"path not found: {join_path(path)!r} (failed at segment {depth})")


def join_path(path: Path) -> str:
    return JSONPATH_JOIN_CHAR.join(str(k) for k in path)


def parse_path(path_str: str) -> List[Key]:
    """
    'properties.user.properties.age' → ['properties', 'user', 'properties', 'age']
    'enum[1]'                        → ['enum', 1]
    ''                               → []
    """
    s = path_str.strip()
    segments: List[Key] = []
    i = 0
    while i < len(s):
        if s[i] == "[":
            j = s.find("]", i)
            if j < 0:
                raise ValueError(f"Unclosed index in path: {path_str!r}")
            idx_str = s[i + 1:j]
            if not idx_str.isdigit():
                raise ValueError(f"Non-integer index in path: {s[i:j + 1]!r}")
            segments.append(int(idx_str))
            i = j + 1
            if i < len(s) and s[i] == JSONPATH_JOIN_CHAR:
                i += 1
        else:
            j = i
            while j < len(s) and s[j] not in (JSONPATH_JOIN_CHAR, "["):
                j += 1
            key = s[i:j]
            if not key:
                raise ValueError(f"Empty key in path: {path_str!r}")
            segments.append(key)
            i = j
            if i < len(s) and s[i] == JSONPATH_JOIN_CHAR:
                i += 1
    return segments


def parent_path(path: Path) -> List[Key]:
    return list(path[:-1])


def _child(container: Any, key: Key, path: Path, depth: int) -> Any:
    if isinstance(container, dict):
        if key in container:
            return container[key]
    elif isinstance(container, list) and isinstance(key, int) and not isinstance(key, bool):
        if -len(container) <= key < len(container):
            return container[key]
    raise PathError(path, depth)


def get_in(doc: Any, path: Path) -> Any:
    current = doc
    for depth, key in enumerate(path):
        current = _child(current, key, path, depth)
    return current


def has_path(doc: Any, path: Path) -> bool:
    try:
        get_in(doc, path)
    except PathError:
        return False
    return True


def _shallow_copy(container: Any) -> Any:
    if isinstance(container, dict):
        return dict(container)
    return list(container)


def update_in(doc: Any, path: Path, fn: Callable[[Any], Any], depth: int = 0) -> Any:
    """
    Return a copy of doc where the value at path is replaced by fn(old_value).
    Only the containers on the path are copied.
    """
    if depth == len(path):
        return fn(doc)
    key = path[depth]
    child = _child(doc, key, path, depth)
    new_doc = _shallow_copy(doc)
    new_doc[key] = update_in(child, path, fn, depth + 1)
    return new_doc


def assoc_in(doc: Any, path: Path, value: Any) -> Any:
    """Copy-on-write set. The last segment of path may be a new dict key."""
    if not path:
        return value
    parent = list(path[:-1])
    last = path[-1]

    def _set(container: Any) -> Any:
        if isinstance(container, dict):
            new = dict(container)
            new[last] = value
            return new
        if isinstance(container, list):
            _child(container, last, path, len(path) - 1)
            new = list(container)
            new[last] = value
            return new
        raise PathError(path, len(path) - 1)

    return update_in(doc, parent, _set)


def dissoc_in(doc: Any, path: Path) -> Any:
    """Copy-on-write delete of the key at path. Missing leaf keys are ignored."""
    if not path:
        raise PathError(path, 0)
    last = path[-1]

    def _delete(container: Any) -> Any:
        if isinstance(container, dict):
            return {k: v for k, v in container.items() if k != last}
        if isinstance(container, list):
            _child(container, last, path, len(path) - 1)
            new = list(container)
            del new[last]
            return new
        raise PathError(path, len(path) - 1)

    return update_in(doc, list(path[:-1]), _delete)
