"""Configuration loading for a11y-scan."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from a11y_scan.dom import DEFAULT_VIEWPORT
from a11y_scan.rules import DEFAULT_TARGET_LEVEL
from a11y_scan.rules.base import LEVELS, PRINCIPLES, SEVERITIES

CONFIG_FILENAMES = (".a11y-scan.toml", "a11y-scan.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("a11y_scan", "a11y-scan")

FORMATS = {"human", "json"}
SORT_CHOICES = {"default", "severity", "principle"}


@dataclass(slots=True)
class ViewportConfig:
    """Layout viewport used for geometry and hit testing."""

    width: int = DEFAULT_VIEWPORT[0]
    height: int = DEFAULT_VIEWPORT[1]

    def as_tuple(self) -> tuple[int, int]:
        return (self.width, self.height)

    def to_dict(self) -> dict[str, Any]:
        return {"width": self.width, "height": self.height}


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    format: str = "human"
    fail_on: str | None = None
    sort: str = "default"
    target_level: str = DEFAULT_TARGET_LEVEL
    rule_enable: list[str] | None = None
    rule_disable: list[str] = field(default_factory=list)
    principle_enable: list[str] | None = None
    principle_disable: list[str] = field(default_factory=list)
    viewport: ViewportConfig = field(default_factory=ViewportConfig)
    source: str | None = None

    def active_principles(self) -> list[str]:
        enabled = self.principle_enable if self.principle_enable is not None else list(PRINCIPLES)
        return [item for item in enabled if item not in self.principle_disable]

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "fail_on": self.fail_on,
            "sort": self.sort,
            "target_level": self.target_level,
            "rules": {
                "enable": list(self.rule_enable) if self.rule_enable is not None else None,
                "disable": list(self.rule_disable),
            },
            "principles": {
                "enable": (
                    list(self.principle_enable) if self.principle_enable is not None else None
                ),
                "disable": list(self.principle_disable),
            },
            "viewport": self.viewport.to_dict(),
            "source": self.source,
        }


def load_app_config(root: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or project-local files with precedence."""
    root = root.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (root / config_path)
        if not resolved.exists():
            raise ValueError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = root / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = root / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template."""
    return "\n".join(
        [
            'format = "human"',
            'fail_on = "serious"',
            'sort = "severity"',
            'target_level = "AA"',
            "",
            "[rules]",
            "enable = [",
            '  "image-alt-text",',
            '  "color-contrast",',
            '  "heading-structure",',
            '  "keyboard-accessible",',
            '  "focus-order",',
            '  "link-purpose",',
            '  "bypass-blocks",',
            '  "form-labels",',
            '  "fieldset-legend",',
            '  "required-fields",',
            '  "valid-html",',
            '  "aria-usage",',
            "]",
            "disable = []",
            "",
            "[principles]",
            '# enable = ["perceivable", "operable"]',
            "disable = []",
            "",
            "[viewport]",
            "width = 1280",
            "height = 800",
            "",
        ]
    )


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    if source_path.name == PYPROJECT_FILENAME:
        section = _find_pyproject_tool_section(loaded)
        return section if section is not None else {}

    tool_section = _find_pyproject_tool_section(loaded)
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AppConfig:
    rules_mapping = _as_table(mapping.get("rules"), "rules")
    principles_mapping = _as_table(mapping.get("principles"), "principles")
    viewport_mapping = _as_table(mapping.get("viewport"), "viewport")

    raw_fail = mapping.get("fail_on")
    fail_value = None if raw_fail is None else _as_choice(raw_fail, set(SEVERITIES), "fail_on")

    principle_enable = _as_str_list_or_none(principles_mapping.get("enable"))
    principle_disable = _as_str_list(principles_mapping.get("disable"))
    for item in (principle_enable or []) + principle_disable:
        if item not in PRINCIPLES:
            raise ValueError(f"principles must be drawn from: {', '.join(PRINCIPLES)}")

    return AppConfig(
        format=_as_choice(mapping.get("format", "human"), FORMATS, "format"),
        fail_on=fail_value,
        sort=_as_choice(mapping.get("sort", "default"), SORT_CHOICES, "sort"),
        target_level=_as_level(mapping.get("target_level", DEFAULT_TARGET_LEVEL)),
        rule_enable=_as_str_list_or_none(rules_mapping.get("enable")),
        rule_disable=_as_str_list(rules_mapping.get("disable")),
        principle_enable=principle_enable,
        principle_disable=principle_disable,
        viewport=_parse_viewport_config(viewport_mapping),
        source=source,
    )


def _parse_viewport_config(value: dict[str, Any]) -> ViewportConfig:
    width = _as_int(value.get("width", DEFAULT_VIEWPORT[0]), "viewport.width")
    height = _as_int(value.get("height", DEFAULT_VIEWPORT[1]), "viewport.height")
    if width <= 0 or height <= 0:
        raise ValueError("viewport.width and viewport.height must be > 0")
    return ViewportConfig(width=width, height=height)


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be a table/object")
    return value


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("Expected a list of strings")
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError("Expected a list of strings")
        items.append(item)
    return items


def _as_str_list_or_none(value: Any) -> list[str] | None:
    if value is None:
        return None
    return _as_str_list(value)


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ValueError(f"{field_name} must be one of: {choices}")
    return value


def _as_level(raw: Any) -> str:
    value = str(raw).upper()
    if value not in LEVELS:
        raise ValueError(f"target_level must be one of: {', '.join(LEVELS)}")
    return value


def _as_int(raw: Any, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"{field_name} must be an integer")
    return raw
