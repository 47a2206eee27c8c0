"""Git metadata sent along with authorization and allocation requests."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path


@dataclass
class GitInfo:
    user: str = ""
    email: str = ""
    repo: str = ""
    branch: str = ""


def _git(args: list[str], cwd: Path) -> str:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
            timeout=5,
        )
    except (OSError, subprocess.TimeoutExpired):
        return ""
    if result.returncode != 0:
        return ""
    return result.stdout.strip()


def read_git_info(path: Path) -> GitInfo:
    """
    Read user, remote and branch for the repository containing ``path``.

    Missing git, a non-repository directory or unset values yield empty strings.
    """
    branch = _git(["rev-parse", "--abbrev-ref", "HEAD"], path)
    return GitInfo(
        user=_git(["config", "user.name"], path),
        email=_git(["config", "user.email"], path),
        repo=_git(["config", "--get", "remote.origin.url"], path),
        branch="" if branch == "HEAD" else branch,
    )


__all__ = ["GitInfo", "read_git_info"]
