"""
Structured event log for worklog analysis runs.

Single JSONL file with typed events for later inspection.

Event types:
- analysis_start: Command, item count, config
- thematic_result: Cluster count, sizes, narrative source
- feature_result: Feature statuses and counts
- recovery_result: Warning/recommendation counts
- summarizer_fallback: External summarizer failed, fallback narrative used
- repo_status_unavailable: Repository status could not be read
- error: Input/config failures
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional


class EventLogger:
    def __init__(self, output_dir: Path):
        """
        Initialize event log.

        Args:
            output_dir: Directory for the log file (created if missing)
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = self.output_dir / "worklog.jsonl"

        self.file_handle = open(self.log_file, 'a')

    def _write_event(self, event_type: str, data: dict[str, Any]) -> None:
        """Write typed event to JSONL log."""
        event = {
            "type": event_type,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **data
        }
        self.file_handle.write(json.dumps(event, default=str) + '\n')
        self.file_handle.flush()

    def log_analysis_start(self, command: str, num_items: int, config: dict[str, Any]) -> None:
        self._write_event("analysis_start", {
            "command": command,
            "num_items": num_items,
            "config": config,
        })

    def log_thematic_result(
        self,
        clusters: list[dict],
        num_connections: int,
        narrative_source: str,
    ) -> None:
        """
        Log thematic clustering outcome.

        Args:
            clusters: Serialized clusters (members are reduced to a count)
            num_connections: Cross-cluster connections found
            narrative_source: "summarizer" or "fallback"
        """
        logged_clusters = [
            {
                "id": c["id"],
                "theme": c["theme"],
                "size": len(c.get("items", [])),
                "coherence": c.get("coherence_score"),
                "keywords": c.get("keywords", []),
            }
            for c in clusters
        ]
        self._write_event("thematic_result", {
            "num_clusters": len(clusters),
            "clusters": logged_clusters,
            "num_connections": num_connections,
            "narrative_source": narrative_source,
        })

    def log_feature_result(
        self,
        features: list[dict],
        uncategorized_count: int,
        active_count: int,
        completed_count: int,
    ) -> None:
        self._write_event("feature_result", {
            "features": [
                {
                    "name": f["name"],
                    "status": f["status"],
                    "completion_estimate": f["completion_estimate"],
                    "size": len(f.get("items", [])),
                }
                for f in features
            ],
            "uncategorized_count": uncategorized_count,
            "active_feature_count": active_count,
            "completed_feature_count": completed_count,
        })

    def log_recovery_result(
        self,
        in_progress_count: int,
        warning_count: int,
        recommendation_count: int,
    ) -> None:
        self._write_event("recovery_result", {
            "in_progress_count": in_progress_count,
            "warning_count": warning_count,
            "recommendation_count": recommendation_count,
        })

    def log_summarizer_fallback(self, reason: str, provider: Optional[str] = None) -> None:
        """Log that the external summarizer failed and the fallback was used."""
        data = {"reason": reason}
        if provider is not None:
            data["provider"] = provider
        self._write_event("summarizer_fallback", data)

    def log_repo_status_unavailable(self, repo_path: str) -> None:
        self._write_event("repo_status_unavailable", {"repo_path": repo_path})

    def log_error(self, message: str, error_type: str = "error") -> None:
        """
        Log error event.

        Args:
            message: Error description
            error_type: Error category (error, warning)
        """
        self._write_event("error", {
            "message": message,
            "error_type": error_type,
        })

    def close(self) -> None:
        """Close log file."""
        if hasattr(self, 'file_handle') and self.file_handle:
            self.file_handle.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
