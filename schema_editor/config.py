"""Static editor configuration: allowed string formats and mock directives."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_FORMAT_NAMES = ("date-time", "date", "email", "hostname", "ipv4", "ipv6", "uri")


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class FormatOption:
    name: str
    title: Optional[str] = None


@dataclass(frozen=True)
class MockOption:
    name: str
    mock: str


def _default_formats() -> Tuple[FormatOption, ...]:
    return tuple(FormatOption(name) for name in DEFAULT_FORMAT_NAMES)


@dataclass(frozen=True)
class EditorConfig:
    formats: Tuple[FormatOption, ...] = field(default_factory=_default_formats)
    mocks: Tuple[MockOption, ...] = ()

    def format_names(self) -> List[str]:
        return [option.name for option in self.formats]

    def mock_directive(self, name: str) -> Optional[str]:
        for option in self.mocks:
            if option.name == name:
                return option.mock
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditorConfig":
        """
        Build a config from {'format': [...], 'mock': [...]}.

        Formats may be plain names or {'name', 'title'} objects; a missing
        'format' key keeps the default list.
        """
        if not isinstance(data, dict):
            raise ConfigError("config must be a JSON object")

        formats = _default_formats()
        if "format" in data:
            raw_formats = data["format"]
            if not isinstance(raw_formats, list):
                raise ConfigError("format: must be an array")
            parsed: List[FormatOption] = []
            for idx, entry in enumerate(raw_formats):
                if isinstance(entry, str):
                    parsed.append(FormatOption(entry))
                elif isinstance(entry, dict) and isinstance(entry.get("name"), str):
                    title = entry.get("title")
                    if title is not None and not isinstance(title, str):
                        raise ConfigError(f"format[{idx}].title: must be a string")
                    parsed.append(FormatOption(entry["name"], title))
                else:
                    raise ConfigError(f"format[{idx}]: must be a string or an object with a 'name'")
            formats = tuple(parsed)

        raw_mocks = data.get("mock", [])
        if not isinstance(raw_mocks, list):
            raise ConfigError("mock: must be an array")
        mocks: List[MockOption] = []
        for idx, entry in enumerate(raw_mocks):
            if not (
                isinstance(entry, dict)
                and isinstance(entry.get("name"), str)
                and isinstance(entry.get("mock"), str)
            ):
                raise ConfigError(f"mock[{idx}]: must be an object with string 'name' and 'mock'")
            mocks.append(MockOption(entry["name"], entry["mock"]))

        return cls(formats=formats, mocks=tuple(mocks))


def load_config(path: str) -> EditorConfig:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigError(
            f"Invalid JSON in config file {path}: {exc.msg} (line {exc.lineno}, column {exc.colno})"
        ) from exc
    config = EditorConfig.from_dict(data)
    logger.debug("loaded %d formats and %d mock directives from %s", len(config.formats), len(config.mocks), path)
    return config
