"""
Data models for activity records and repository state.

ActivityItem is produced upstream by the collectors and treated as
immutable here. RepoStatus is what the git status collaborator reports.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional


class ItemFormatError(ValueError):
    """Raised when an activity record cannot be parsed."""
    pass


def parse_timestamp(value) -> datetime:
    """Parse an ISO-8601 string (or datetime) into an aware datetime."""
    if isinstance(value, datetime):
        ts = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        ts = datetime.fromisoformat(text)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class ActivityItem:
    """A single timestamped activity record (commit, prompt, GitHub event, ...)."""

    source: str
    timestamp: datetime
    title: str
    description: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def __post_init__(self):
        # Naive timestamps are UTC
        object.__setattr__(self, "timestamp", parse_timestamp(self.timestamp))

    @property
    def text(self) -> str:
        """Title plus description, as fed to the tokenizer."""
        return f"{self.title} {self.description or ''}"

    @property
    def repo(self) -> Optional[str]:
        """Repository path from metadata, if the collector recorded one."""
        repo = self.metadata.get("repo")
        return repo if isinstance(repo, str) and repo else None

    def to_dict(self) -> dict:
        data = {
            "source": self.source,
            "timestamp": self.timestamp.isoformat(),
            "title": self.title,
        }
        if self.description is not None:
            data["description"] = self.description
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> ActivityItem:
        try:
            source = data["source"]
            title = data["title"]
            timestamp = parse_timestamp(data["timestamp"])
        except KeyError as e:
            raise ItemFormatError(f"Missing field {e} in activity record")
        except (TypeError, ValueError) as e:
            raise ItemFormatError(f"Bad timestamp in activity record: {e}")

        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise ItemFormatError("metadata must be an object")

        return cls(
            source=str(source),
            timestamp=timestamp,
            title=str(title),
            description=data.get("description"),
            metadata=metadata,
        )


def load_items(path: Path) -> list[ActivityItem]:
    """
    Load activity items from a JSON array file or a JSONL file.

    Args:
        path: File with one record per line, or a single JSON array

    Returns:
        Items in file order

    Raises:
        ItemFormatError: On malformed JSON or records (with file/line)
    """
    path = Path(path)
    with open(path) as f:
        content = f.read()

    if content.lstrip().startswith("["):
        try:
            records = json.loads(content)
        except json.JSONDecodeError as e:
            raise ItemFormatError(f"{path}: invalid JSON: {e}")
        items = []
        for i, record in enumerate(records):
            try:
                items.append(ActivityItem.from_dict(record))
            except ItemFormatError as e:
                raise ItemFormatError(f"{path}: record {i}: {e}")
        return items

    items = []
    for line_num, line in enumerate(content.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            items.append(ActivityItem.from_dict(json.loads(line)))
        except json.JSONDecodeError as e:
            raise ItemFormatError(f"{path}:{line_num}: invalid JSON: {e}")
        except ItemFormatError as e:
            raise ItemFormatError(f"{path}:{line_num}: {e}")
    return items


@dataclass
class FileChange:
    """One entry from `git status --porcelain`."""

    path: str
    status: str              # modified, added, deleted, renamed, untracked
    staged: bool


@dataclass
class BranchInfo:
    name: str
    is_detached: bool = False
    ahead: int = 0
    behind: int = 0
    tracking_branch: Optional[str] = None


@dataclass
class RepoStatus:
    """Working-tree and branch state of a single repository."""

    repo_path: str
    repo_name: str
    branch: BranchInfo
    changes: list[FileChange] = field(default_factory=list)
    last_commit_hash: Optional[str] = None
    last_commit_message: Optional[str] = None
    last_commit_date: Optional[datetime] = None

    @property
    def has_uncommitted_changes(self) -> bool:
        return len(self.changes) > 0

    @property
    def has_unpushed_commits(self) -> bool:
        return self.branch.ahead > 0

    @property
    def staged_count(self) -> int:
        return sum(1 for c in self.changes if c.staged)

    @property
    def unstaged_count(self) -> int:
        """Changes not in the index, untracked files included."""
        return sum(1 for c in self.changes if not c.staged)

    @property
    def untracked_count(self) -> int:
        return sum(1 for c in self.changes if c.status == "untracked")

    def to_dict(self) -> dict:
        return {
            "repo_path": self.repo_path,
            "repo_name": self.repo_name,
            "branch": {
                "name": self.branch.name,
                "is_detached": self.branch.is_detached,
                "ahead": self.branch.ahead,
                "behind": self.branch.behind,
                "tracking_branch": self.branch.tracking_branch,
            },
            "changes": [
                {"path": c.path, "status": c.status, "staged": c.staged}
                for c in self.changes
            ],
            "has_uncommitted_changes": self.has_uncommitted_changes,
            "has_unpushed_commits": self.has_unpushed_commits,
            "last_commit_hash": self.last_commit_hash,
            "last_commit_message": self.last_commit_message,
            "last_commit_date": (
                self.last_commit_date.isoformat() if self.last_commit_date else None
            ),
        }
