"""
Report generation for analytics snapshots.
"""

from .generator import (
    ReportGenerator,
    generate_json_report,
    generate_markdown_report,
)

__all__ = [
    "ReportGenerator",
    "generate_json_report",
    "generate_markdown_report",
]
