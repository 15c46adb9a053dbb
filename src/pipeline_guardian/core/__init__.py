"""Core scanning engine."""

from .rules import Rule, RuleTable, DEFAULT_RULES
from .scanner import (
    DEFAULT_IGNORE_PATTERNS,
    Finding,
    Scanner,
    ScanResult,
    ScanStats,
    scan_dir,
)
from .filters import filter_findings, filter_by_pipeline_type

__all__ = [
    "Rule",
    "RuleTable",
    "DEFAULT_RULES",
    "DEFAULT_IGNORE_PATTERNS",
    "Finding",
    "Scanner",
    "ScanResult",
    "ScanStats",
    "scan_dir",
    "filter_findings",
    "filter_by_pipeline_type",
]
