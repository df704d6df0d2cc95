"""
Repository status via the git CLI.

A repository that cannot be read (missing, not a repo, git unavailable,
command timeout) reports no status rather than failing the run.
"""

import os
import subprocess
from pathlib import Path
from typing import Iterable, Optional

from .models import BranchInfo, FileChange, RepoStatus, parse_timestamp

GIT_TIMEOUT = 10


class GitStatusError(Exception):
    """Raised when a git invocation cannot be run at all."""
    pass


def expand_path(path: str) -> str:
    return os.path.expanduser(path)


def run_git(repo_path: str, *args: str) -> subprocess.CompletedProcess:
    """Run a git command in repo_path without raising on non-zero exit."""
    try:
        return subprocess.run(
            ["git", *args],
            cwd=repo_path,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT,
        )
    except (subprocess.SubprocessError, OSError) as e:
        raise GitStatusError(f"git {' '.join(args)} failed in {repo_path}: {e}")


def get_branch_info(repo_path: str) -> BranchInfo:
    result = run_git(repo_path, "rev-parse", "--abbrev-ref", "HEAD")
    name = result.stdout.strip()
    is_detached = result.returncode != 0 or name == "HEAD"

    if is_detached:
        short = run_git(repo_path, "rev-parse", "--short", "HEAD").stdout.strip()
        return BranchInfo(name=f"detached@{short}", is_detached=True)

    info = BranchInfo(name=name)
    tracking = run_git(repo_path, "rev-parse", "--abbrev-ref", f"{name}@{{upstream}}")
    if tracking.returncode == 0:
        info.tracking_branch = tracking.stdout.strip()
        counts = run_git(
            repo_path, "rev-list", "--left-right", "--count",
            f"{info.tracking_branch}...HEAD",
        ).stdout.split()
        if len(counts) == 2:
            info.behind = int(counts[0] or 0)
            info.ahead = int(counts[1] or 0)
    return info


def parse_porcelain(output: str) -> list[FileChange]:
    """Parse `git status --porcelain=v1` output."""
    changes = []
    for line in output.splitlines():
        if len(line) < 4:
            continue
        index_status, work_status = line[0], line[1]
        path = line[3:].strip()
        if not path:
            continue

        staged = index_status not in (" ", "?")

        codes = (index_status, work_status)
        if "?" in codes:
            status = "untracked"
        elif "A" in codes:
            status = "added"
        elif "D" in codes:
            status = "deleted"
        elif "R" in codes:
            status = "renamed"
        else:
            status = "modified"

        changes.append(FileChange(path=path, status=status, staged=staged))
    return changes


def get_changes(repo_path: str) -> list[FileChange]:
    result = run_git(repo_path, "status", "--porcelain=v1", "-uall")
    if result.returncode != 0:
        return []
    return parse_porcelain(result.stdout)


def get_repo_status(repo_path: str) -> Optional[RepoStatus]:
    """
    Read branch, working-tree and last-commit state of one repository.

    Args:
        repo_path: Path to the repository (~ is expanded)

    Returns:
        RepoStatus, or None when the status is unavailable
    """
    expanded = expand_path(repo_path)
    if not Path(expanded).is_dir():
        return None

    try:
        if run_git(expanded, "rev-parse", "--git-dir").returncode != 0:
            return None

        branch = get_branch_info(expanded)
        changes = get_changes(expanded)
        status = RepoStatus(
            repo_path=repo_path,
            repo_name=repo_path.rstrip("/").split("/")[-1] or repo_path,
            branch=branch,
            changes=changes,
        )

        last = run_git(expanded, "log", "-1", "--format=%H|%s|%aI")
        parts = last.stdout.strip().split("|")
        if last.returncode == 0 and len(parts) >= 3:
            status.last_commit_hash = parts[0]
            status.last_commit_message = "|".join(parts[1:-1])
            status.last_commit_date = parse_timestamp(parts[-1])
    except (GitStatusError, ValueError):
        return None

    return status


def get_all_repo_statuses(repo_paths: Iterable[str]) -> list[RepoStatus]:
    """Statuses for every readable repository, in input order."""
    statuses = []
    for path in repo_paths:
        status = get_repo_status(path)
        if status is not None:
            statuses.append(status)
    return statuses
