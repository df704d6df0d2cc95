"""
Worklog - clustering and thematic analysis of developer activity.
"""

from .config import WorklogConfig, load_config
from .runner import WorklogRunner

__all__ = ["WorklogConfig", "load_config", "WorklogRunner"]

__version__ = "0.1.0"
