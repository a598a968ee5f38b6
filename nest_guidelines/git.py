"""Git subprocess helpers."""

from __future__ import annotations

from pathlib import Path
from subprocess import CalledProcessError, run


class GitError(RuntimeError):
    """Raised when git command execution fails."""


CHANGED_FILTER = "--diff-filter=AM"


def get_staged_files(repo: Path) -> list[str]:
    """Return added/modified paths staged in the index."""
    return _name_only(repo, ["diff", "--staged", "--name-only", CHANGED_FILTER])


def get_unstaged_files(repo: Path) -> list[str]:
    """Return added/modified paths in the working tree that are not staged."""
    return _name_only(repo, ["diff", "--name-only", CHANGED_FILTER])


def get_changed_files_against(repo: Path, base: str) -> list[str]:
    """Return added/modified paths between ``base`` and the working tree."""
    return _name_only(repo, ["diff", base, "--name-only", CHANGED_FILTER])


def is_git_repository(repo: Path) -> bool:
    """Return whether ``repo`` is inside a git work tree."""
    try:
        _run_git(repo, ["rev-parse", "--git-dir"])
    except GitError:
        return False
    return True


def revision_exists(repo: Path, revision: str) -> bool:
    """Return whether ``revision`` resolves to a commit."""
    try:
        _run_git(repo, ["rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}"])
    except GitError:
        return False
    return True


def get_repository_root(repo: Path) -> Path:
    """Return the work-tree root, or ``repo`` itself outside of git."""
    try:
        return Path(_run_git(repo, ["rev-parse", "--show-toplevel"]).strip())
    except GitError:
        return repo


def _name_only(repo: Path, args: list[str]) -> list[str]:
    output = _run_git(repo, args)
    return [line.strip() for line in output.splitlines() if line.strip()]


def _run_git(repo: Path, args: list[str]) -> str:
    try:
        completed = run(
            ["git", *args],
            cwd=repo,
            check=True,
            capture_output=True,
            text=True,
        )
    except CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise GitError(stderr or f"git {' '.join(args)} failed") from exc
    except OSError as exc:
        raise GitError(f"git is not available: {exc}") from exc

    return completed.stdout
