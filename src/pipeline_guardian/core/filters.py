"""Post-scan narrowing of findings."""

import os
from fnmatch import fnmatchcase
from typing import Dict, Iterable, Optional, Sequence, Tuple

from .scanner import Finding
from ..utils.exceptions import InvalidFilterError

# Pipeline type -> path suffixes of the files that belong to it.
# None keeps every finding.
PIPELINE_TYPES: Dict[str, Optional[Tuple[str, ...]]] = {
    "auto": None,
    "all": None,
    "github-actions": (".yml", ".yaml"),
    "gitlab-ci": (".gitlab-ci.yml",),
    "jenkins": ("Jenkinsfile",),
}


def filter_findings(
    findings: Sequence[Finding],
    file_pattern: str = "",
    rule_names: Optional[Iterable[str]] = None,
) -> Sequence[Finding]:
    """
    Narrow findings by file name glob and/or rule name.

    Args:
        findings: Findings to filter; never modified
        file_pattern: Case-sensitive glob matched against the file's base
            name; empty means any file
        rule_names: Rule names compared case-insensitively; empty or None
            means any rule

    Returns:
        The input itself when no criterion is given, otherwise a new list
        of the matching findings in input order
    """
    wanted_rules = {name.casefold() for name in rule_names or ()}

    if not file_pattern and not wanted_rules:
        return findings

    filtered = []
    for finding in findings:
        if file_pattern and not fnmatchcase(os.path.basename(finding.file), file_pattern):
            continue
        if wanted_rules and finding.rule.casefold() not in wanted_rules:
            continue
        filtered.append(finding)

    return filtered


def filter_by_pipeline_type(
    findings: Sequence[Finding],
    pipeline_type: str,
) -> Sequence[Finding]:
    """Keep findings from files belonging to a CI pipeline type."""
    if not pipeline_type:
        return findings

    if pipeline_type not in PIPELINE_TYPES:
        raise InvalidFilterError(
            f"Unknown pipeline type: {pipeline_type}",
            suggestion=f"Use one of: {', '.join(PIPELINE_TYPES)}",
        )

    suffixes = PIPELINE_TYPES[pipeline_type]
    if suffixes is None:
        return findings

    return [f for f in findings if f.file.endswith(suffixes)]
