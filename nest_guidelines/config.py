"""Configuration loading for nest-guidelines."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

CONFIG_FILENAMES = (".nest-guidelines.toml", "nest-guidelines.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("nest_guidelines", "nest-guidelines")

DEFAULT_EXTENSION = ".ts"
DEFAULT_SEARCH_DIRS = ("src", "lib", "app")
DEFAULT_EXCLUDE_DIRS = ("node_modules", "dist", "build", ".git")
DEFAULT_TEST_SUFFIXES = (".spec.ts", ".test.ts")
DEFAULT_NAMING_EXEMPTIONS = (
    "main.ts",
    "index.ts",
    "app.module.ts",
    "app.controller.ts",
    "app.service.ts",
)
DEFAULT_CONTROLLER_SUFFIX = ".controller.ts"
DEFAULT_PROJECT_MARKER = "package.json"


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    format: str = "human"
    extension: str = DEFAULT_EXTENSION
    search_dirs: list[str] = field(default_factory=lambda: list(DEFAULT_SEARCH_DIRS))
    exclude_dirs: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS))
    test_suffixes: list[str] = field(default_factory=lambda: list(DEFAULT_TEST_SUFFIXES))
    base_branch: str | None = None
    project_marker: str = DEFAULT_PROJECT_MARKER
    workers: int = 1
    rule_enable: list[str] | None = None
    rule_disable: list[str] = field(default_factory=list)
    naming_exemptions: list[str] = field(
        default_factory=lambda: list(DEFAULT_NAMING_EXEMPTIONS)
    )
    controller_suffix: str = DEFAULT_CONTROLLER_SUFFIX
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "extension": self.extension,
            "search_dirs": list(self.search_dirs),
            "exclude_dirs": list(self.exclude_dirs),
            "test_suffixes": list(self.test_suffixes),
            "base_branch": self.base_branch,
            "project_marker": self.project_marker,
            "workers": self.workers,
            "rules": {
                "enable": list(self.rule_enable) if self.rule_enable is not None else None,
                "disable": list(self.rule_disable),
            },
            "naming": {"exemptions": list(self.naming_exemptions)},
            "controller": {"suffix": self.controller_suffix},
            "source": self.source,
        }


def load_app_config(repo: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or repository-local files with precedence."""
    repo = repo.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (repo / config_path)
        if not resolved.exists():
            raise ValueError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = repo / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = repo / PYPROJECT_FILENAME
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
            'extension = ".ts"',
            'search_dirs = ["src", "lib", "app"]',
            'exclude_dirs = ["node_modules", "dist", "build", ".git"]',
            'test_suffixes = [".spec.ts", ".test.ts"]',
            '# base_branch = "main"',
            'project_marker = "package.json"',
            "workers = 1",
            "",
            "[rules]",
            "enable = [",
            '  "file-naming",',
            '  "interface-naming",',
            '  "controller-return-type",',
            "]",
            "disable = []",
            "",
            "[naming]",
            "exemptions = [",
            '  "main.ts",',
            '  "index.ts",',
            '  "app.module.ts",',
            '  "app.controller.ts",',
            '  "app.service.ts",',
            "]",
            "",
            "[controller]",
            'suffix = ".controller.ts"',
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
    naming_mapping = _as_table(mapping.get("naming"), "naming")
    controller_mapping = _as_table(mapping.get("controller"), "controller")

    raw_format = mapping.get("format", "human")
    format_value = str(raw_format).lower()
    if format_value not in {"human", "json"}:
        format_value = "human"

    extension = _as_str(mapping.get("extension", DEFAULT_EXTENSION), "extension")
    if not extension.startswith("."):
        raise ValueError("extension must start with '.'")

    raw_branch = mapping.get("base_branch")
    base_branch = None if raw_branch is None else _as_str(raw_branch, "base_branch")

    workers = _as_int(mapping.get("workers", 1), "workers")
    if workers <= 0:
        raise ValueError("workers must be > 0")

    exemptions = naming_mapping.get("exemptions")
    return AppConfig(
        format=format_value,
        extension=extension,
        search_dirs=_as_str_list_or_default(mapping.get("search_dirs"), DEFAULT_SEARCH_DIRS),
        exclude_dirs=_as_str_list_or_default(mapping.get("exclude_dirs"), DEFAULT_EXCLUDE_DIRS),
        test_suffixes=_as_str_list_or_default(
            mapping.get("test_suffixes"), DEFAULT_TEST_SUFFIXES
        ),
        base_branch=base_branch,
        project_marker=_as_str(
            mapping.get("project_marker", DEFAULT_PROJECT_MARKER), "project_marker"
        ),
        workers=workers,
        rule_enable=_as_str_list_or_none(rules_mapping.get("enable")),
        rule_disable=_as_str_list(rules_mapping.get("disable")),
        naming_exemptions=(
            list(DEFAULT_NAMING_EXEMPTIONS) if exemptions is None else _as_str_list(exemptions)
        ),
        controller_suffix=_as_str(
            controller_mapping.get("suffix", DEFAULT_CONTROLLER_SUFFIX), "controller.suffix"
        ),
        source=source,
    )


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


def _as_str_list_or_default(value: Any, default: tuple[str, ...]) -> list[str]:
    if value is None:
        return list(default)
    return _as_str_list(value)


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    return value


def _as_int(raw: Any, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"{field_name} must be an integer")
    return raw
