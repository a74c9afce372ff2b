"""Editable JSON Schema documents: path-addressed mutation and schema inference."""

from .config import ConfigError, EditorConfig, FormatOption, MockOption, load_config
from .editor import SchemaEditor, apply_required
from .inference import infer_schema
from .normalize import DEFAULT_DOCUMENT, DEFAULT_SCHEMA, SCHEMA_TYPES, default_schema, normalize_schema
from .paths import PathError, get_in, join_path, parse_path
from .session import ChangeNotifier, EditorSession

__all__ = [
    "ChangeNotifier",
    "ConfigError",
    "DEFAULT_DOCUMENT",
    "DEFAULT_SCHEMA",
    "EditorConfig",
    "EditorSession",
    "FormatOption",
    "MockOption",
    "PathError",
    "SCHEMA_TYPES",
    "SchemaEditor",
    "apply_required",
    "default_schema",
    "get_in",
    "infer_schema",
    "join_path",
    "load_config",
    "normalize_schema",
    "parse_path",
]

__version__ = "0.1.0"
