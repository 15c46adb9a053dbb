"""Pipeline Guardian: find credentials committed to CI/CD repositories."""

from .version import VERSION
from .core import (
    DEFAULT_IGNORE_PATTERNS,
    DEFAULT_RULES,
    Finding,
    Rule,
    RuleTable,
    Scanner,
    ScanResult,
    ScanStats,
    filter_by_pipeline_type,
    filter_findings,
    scan_dir,
)

__version__ = VERSION

__all__ = [
    "DEFAULT_IGNORE_PATTERNS",
    "DEFAULT_RULES",
    "Finding",
    "Rule",
    "RuleTable",
    "Scanner",
    "ScanResult",
    "ScanStats",
    "filter_by_pipeline_type",
    "filter_findings",
    "scan_dir",
]
