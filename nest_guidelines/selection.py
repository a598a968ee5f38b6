"""Resolution of the file set to validate."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Literal

from nest_guidelines.config import (
    DEFAULT_EXCLUDE_DIRS,
    DEFAULT_EXTENSION,
    DEFAULT_SEARCH_DIRS,
    DEFAULT_TEST_SUFFIXES,
    AppConfig,
)
from nest_guidelines.git import (
    GitError,
    get_changed_files_against,
    get_repository_root,
    get_staged_files,
    get_unstaged_files,
    is_git_repository,
    revision_exists,
)

logger = logging.getLogger(__name__)

SelectionMode = Literal["explicit", "all", "changed", "branch"]


@dataclass(frozen=True, slots=True)
class FilePolicy:
    """Extension and exclusion policy shared by scans and change-sets."""

    extension: str = DEFAULT_EXTENSION
    exclude_dirs: tuple[str, ...] = DEFAULT_EXCLUDE_DIRS
    test_suffixes: tuple[str, ...] = DEFAULT_TEST_SUFFIXES
    search_dirs: tuple[str, ...] = DEFAULT_SEARCH_DIRS

    @classmethod
    def from_config(cls, config: AppConfig) -> FilePolicy:
        return cls(
            extension=config.extension,
            exclude_dirs=tuple(config.exclude_dirs),
            test_suffixes=tuple(config.test_suffixes),
            search_dirs=tuple(config.search_dirs),
        )

    def accepts(self, path: str) -> bool:
        if not path.endswith(self.extension):
            return False
        if any(path.endswith(suffix) for suffix in self.test_suffixes):
            return False
        return not self.is_excluded_dir(PurePath(path).parent)

    def is_excluded_dir(self, directory: PurePath) -> bool:
        return any(part in self.exclude_dirs for part in directory.parts)


@dataclass(slots=True)
class FileSelection:
    """Ordered, deduplicated files plus any degradation warnings."""

    files: list[str]
    mode: SelectionMode
    warnings: list[str] = field(default_factory=list)


def select_files(
    repo: Path,
    *,
    files: list[str] | None = None,
    check_all: bool = False,
    base_branch: str | None = None,
    policy: FilePolicy | None = None,
) -> FileSelection:
    """Resolve files from an explicit list, a full scan, or the git change-set."""
    effective = policy or FilePolicy()
    if files:
        return FileSelection(files=select_explicit(repo, files), mode="explicit")
    if check_all:
        return FileSelection(files=scan_files(repo, effective), mode="all")
    return select_changed(repo, effective, base_branch=base_branch)


def select_explicit(repo: Path, files: list[str]) -> list[str]:
    """Keep the given paths that exist, resolving relative paths against ``repo``."""
    selected: list[str] = []
    for item in files:
        if Path(item).is_file():
            selected.append(item)
        elif (repo / item).is_file():
            selected.append(str(repo / item))
        else:
            logger.debug("Skipping missing file: %s", item)
    return _dedupe(selected)


def scan_files(repo: Path, policy: FilePolicy) -> list[str]:
    """Recursively collect matching files under the search directories."""
    collected: list[str] = []
    for name in policy.search_dirs:
        _scan_dir(repo / name, policy, collected)
    if not collected:
        logger.debug("No files under %s; scanning %s", policy.search_dirs, repo)
        _scan_dir(repo, policy, collected)
    return _dedupe(collected)


def select_changed(
    repo: Path,
    policy: FilePolicy,
    *,
    base_branch: str | None = None,
) -> FileSelection:
    """Resolve added/modified files from git, degrading instead of failing."""
    if not is_git_repository(repo):
        return FileSelection(
            files=[],
            mode="changed",
            warnings=[
                "Git is not available or this is not a git repository; nothing to compare."
            ],
        )

    warnings: list[str] = []
    mode: SelectionMode = "changed"
    if base_branch is not None:
        if revision_exists(repo, base_branch):
            names = _query(get_changed_files_against, repo, base_branch)
            mode = "branch"
        else:
            warnings.append(
                f"Cannot compare against branch '{base_branch}'. Using local changes instead."
            )
            names = _local_changes(repo)
    else:
        names = _local_changes(repo)

    root = get_repository_root(repo)
    selected: list[str] = []
    for name in names:
        if not policy.accepts(name):
            continue
        path = _under_repo(repo, root, name)
        if path is not None and Path(path).is_file():
            selected.append(path)
    return FileSelection(files=_dedupe(selected), mode=mode, warnings=warnings)


def _local_changes(repo: Path) -> list[str]:
    return _query(get_staged_files, repo) + _query(get_unstaged_files, repo)


def _query(func: Callable[..., list[str]], *args: object) -> list[str]:
    try:
        return func(*args)
    except GitError as exc:
        logger.warning("git query failed: %s", exc)
        return []


def _under_repo(repo: Path, root: Path, name: str) -> str | None:
    absolute = (root / name).resolve()
    try:
        relative = absolute.relative_to(repo.resolve())
    except ValueError:
        return None
    return str(repo / relative)


def _scan_dir(directory: Path, policy: FilePolicy, collected: list[str]) -> None:
    if not directory.is_dir():
        return
    for entry in sorted(directory.iterdir(), key=lambda item: item.name):
        if entry.is_dir():
            if not policy.is_excluded_dir(PurePath(entry.name)):
                _scan_dir(entry, policy, collected)
        elif entry.is_file() and policy.accepts(entry.name):
            collected.append(str(entry))


def _dedupe(items: list[str]) -> list[str]:
    """Drop later spellings of a file already listed, keeping the first one."""
    seen: set[Path] = set()
    output: list[str] = []
    for item in items:
        key = Path(item).resolve()
        if key in seen:
            continue
        seen.add(key)
        output.append(item)
    return output
