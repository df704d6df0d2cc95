"""
Reporting layer on top of the clustering engines.
"""

from .narrative import build_narrative_prompt, fallback_narrative, synthesize_narrative
from .summary import build_smart_summary
from .recovery import RecoveryReport, format_recovery_report, generate_recovery_report

__all__ = [
    "build_narrative_prompt",
    "fallback_narrative",
    "synthesize_narrative",
    "build_smart_summary",
    "RecoveryReport",
    "format_recovery_report",
    "generate_recovery_report",
]
