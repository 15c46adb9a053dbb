"""Directory scanner that reports credential leaks line by line."""

import os
import stat
from bisect import bisect_right
from dataclasses import dataclass, field
from datetime import datetime
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple, Union

from .rules import DEFAULT_RULES, RuleTable
from ..utils.exceptions import InvalidTargetError
from ..utils.logger import PerformanceLogger, get_logger

logger = get_logger(__name__)

PathLike = Union[str, "os.PathLike[str]"]
SkipCallback = Callable[[str, str], None]

DEFAULT_IGNORE_PATTERNS: Tuple[str, ...] = (
    ".git", "node_modules", "vendor", "*.jpg", "*.png", "*.gif",
)
MAX_FILE_SIZE = 5 * 1024 * 1024
MAX_LINE_LENGTH = 100
BINARY_SNIFF_BYTES = 512

# Reasons passed to the skip callback
SKIP_IGNORED = "ignored"
SKIP_PRUNED = "pruned"
SKIP_OVERSIZE = "oversize"
SKIP_BINARY = "binary"
SKIP_UNREADABLE = "unreadable"


@dataclass(frozen=True)
class Finding:
    """A single rule match, at most one per file line."""

    file: str
    rule: str
    line_num: int
    line_text: str
    offset: Tuple[int, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "rule": self.rule,
            "line_num": self.line_num,
            "line_text": self.line_text,
            "offset": list(self.offset),
        }


@dataclass
class ScanStats:
    """Counts of what a best-effort traversal scanned and skipped."""

    files_scanned: int = 0
    files_ignored: int = 0
    dirs_pruned: int = 0
    files_oversize: int = 0
    files_binary: int = 0
    entries_unreadable: int = 0

    @property
    def files_skipped(self) -> int:
        return (
            self.files_ignored
            + self.files_oversize
            + self.files_binary
            + self.entries_unreadable
        )


@dataclass
class ScanResult:
    """Findings of one scan with timing and traversal statistics."""

    target: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    duration_seconds: float = 0.0
    findings: List[Finding] = field(default_factory=list)
    stats: ScanStats = field(default_factory=ScanStats)

    @property
    def total_findings(self) -> int:
        return len(self.findings)


def is_binary(content: bytes) -> bool:
    """Treat content as binary when its first 512 bytes contain a NUL."""
    return b"\x00" in content[:BINARY_SNIFF_BYTES]


def sanitize_line_text(text: str, max_length: int = MAX_LINE_LENGTH) -> str:
    """Truncate a line for display. This shortens, it does not redact."""
    if len(text) > max_length:
        return text[:max_length] + "..."
    return text


def line_starts(content: bytes) -> List[int]:
    """Byte offsets at which each line of content begins."""
    starts = [0]
    pos = content.find(b"\n")
    while pos != -1:
        starts.append(pos + 1)
        pos = content.find(b"\n", pos + 1)
    return starts


def get_line_info(
    content: bytes,
    position: int,
    starts: Optional[Sequence[int]] = None,
) -> Tuple[int, str]:
    """
    Locate the line holding a byte position.

    Args:
        content: Raw file content
        position: Byte offset into content
        starts: Precomputed line_starts(content), reused across lookups

    Returns:
        (1-based line number, line text without its terminator)
    """
    if starts is None:
        starts = line_starts(content)

    line_num = bisect_right(starts, position)
    start = starts[line_num - 1]
    end = starts[line_num] - 1 if line_num < len(starts) else len(content)

    line = content[start:end]
    if line.endswith(b"\r"):
        line = line[:-1]

    return line_num, line.decode("utf-8", errors="replace")


def matches_any(name: str, patterns: Sequence[str]) -> bool:
    return any(fnmatchcase(name, pattern) for pattern in patterns)


class Scanner:
    """
    Walk a directory tree and apply every rule to each admitted file.

    Traversal is best effort: entries that cannot be read are skipped
    without aborting the walk. Only a root that cannot be traversed at all
    raises.
    """

    def __init__(
        self,
        rules: RuleTable = DEFAULT_RULES,
        max_file_size: int = MAX_FILE_SIZE,
        max_line_length: int = MAX_LINE_LENGTH,
        on_skip: Optional[SkipCallback] = None,
    ) -> None:
        """
        Initialize scanner.

        Args:
            rules: Rules to apply, in priority order
            max_file_size: Files larger than this many bytes are skipped
            max_line_length: Display length of reported line text
            on_skip: Called with (path, reason) for every skipped entry
        """
        self.rules = rules
        self.max_file_size = max_file_size
        self.max_line_length = max_line_length
        self.on_skip = on_skip

    def scan(
        self,
        root_path: PathLike,
        ignore_patterns: Optional[Sequence[str]] = None,
    ) -> List[Finding]:
        """
        Scan a directory (or single file) for credential leaks.

        Args:
            root_path: Directory or file to scan
            ignore_patterns: Base-name globs to exclude; None uses
                DEFAULT_IGNORE_PATTERNS, an empty sequence excludes nothing

        Returns:
            Findings in traversal order

        Raises:
            InvalidTargetError: If the root cannot be traversed
        """
        return self.run(root_path, ignore_patterns).findings

    def run(
        self,
        root_path: PathLike,
        ignore_patterns: Optional[Sequence[str]] = None,
    ) -> ScanResult:
        """Scan like `scan` and also return timing and skip statistics."""
        root = os.path.abspath(os.fspath(root_path))
        patterns = DEFAULT_IGNORE_PATTERNS if ignore_patterns is None else tuple(ignore_patterns)

        result = ScanResult(target=root, started_at=datetime.now())
        logger.info(f"Starting secrets scan on {root}")

        with PerformanceLogger(logger, f"secrets scan of {root}") as perf:
            root_stat = self._stat_root(root)

            if stat.S_ISDIR(root_stat.st_mode):
                self._walk(root, patterns, result)
            elif matches_any(os.path.basename(root), patterns):
                self._skip(root, SKIP_IGNORED, result.stats)
            else:
                self._scan_file(root, root_stat, result)

        result.completed_at = datetime.now()
        result.duration_seconds = perf.duration

        stats = result.stats
        logger.info(
            f"Secrets scan complete: {result.total_findings} findings in "
            f"{stats.files_scanned} files ({stats.files_skipped} files skipped, "
            f"{stats.dirs_pruned} directories pruned)"
        )
        return result

    def _stat_root(self, root: str) -> os.stat_result:
        try:
            root_stat = os.stat(root)
            if stat.S_ISDIR(root_stat.st_mode):
                with os.scandir(root):
                    pass
            elif not stat.S_ISREG(root_stat.st_mode):
                raise InvalidTargetError(
                    f"Not a directory or regular file: {root}",
                    suggestion="Point the scan at a directory or a text file",
                )
        except OSError as e:
            raise InvalidTargetError(
                f"Cannot scan path: {root}",
                details={"error": e.strerror or str(e)},
                suggestion="Check that the path exists and is readable",
            ) from e
        return root_stat

    def _walk(self, root: str, patterns: Sequence[str], result: ScanResult) -> None:
        stats = result.stats

        if matches_any(os.path.basename(root), patterns):
            self._skip(root, SKIP_PRUNED, stats)
            return

        def on_error(error: OSError) -> None:
            self._skip(error.filename or root, SKIP_UNREADABLE, stats)

        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
            kept = []
            for name in sorted(dirnames):
                if matches_any(name, patterns):
                    self._skip(os.path.join(dirpath, name), SKIP_PRUNED, stats)
                else:
                    kept.append(name)
            dirnames[:] = kept

            for name in sorted(filenames):
                path = os.path.join(dirpath, name)
                if matches_any(name, patterns):
                    self._skip(path, SKIP_IGNORED, stats)
                    continue

                try:
                    file_stat = os.stat(path)
                except OSError:
                    self._skip(path, SKIP_UNREADABLE, stats)
                    continue

                if not stat.S_ISREG(file_stat.st_mode):
                    self._skip(path, SKIP_UNREADABLE, stats)
                    continue

                self._scan_file(path, file_stat, result)

    def _scan_file(self, path: str, file_stat: os.stat_result, result: ScanResult) -> None:
        stats = result.stats

        if file_stat.st_size > self.max_file_size:
            self._skip(path, SKIP_OVERSIZE, stats)
            return

        try:
            content = Path(path).read_bytes()
        except OSError:
            self._skip(path, SKIP_UNREADABLE, stats)
            return

        if is_binary(content):
            self._skip(path, SKIP_BINARY, stats)
            return

        stats.files_scanned += 1
        result.findings.extend(self.scan_content(path, content))

    def scan_content(self, path: str, content: bytes) -> List[Finding]:
        """Apply every rule to raw content, reporting each line at most once."""
        findings: List[Finding] = []
        reported_lines: Set[int] = set()
        starts = line_starts(content)

        for rule in self.rules:
            for match in rule.pattern.finditer(content):
                line_num = bisect_right(starts, match.start())
                if line_num in reported_lines:
                    continue
                reported_lines.add(line_num)

                _, line_text = get_line_info(content, match.start(), starts)

                findings.append(Finding(
                    file=path,
                    rule=rule.name,
                    line_num=line_num,
                    line_text=sanitize_line_text(line_text, self.max_line_length),
                    offset=match.span(),
                ))

        return findings

    def _skip(self, path: str, reason: str, stats: ScanStats) -> None:
        if reason == SKIP_IGNORED:
            stats.files_ignored += 1
        elif reason == SKIP_PRUNED:
            stats.dirs_pruned += 1
        elif reason == SKIP_OVERSIZE:
            stats.files_oversize += 1
        elif reason == SKIP_BINARY:
            stats.files_binary += 1
        else:
            stats.entries_unreadable += 1

        if self.on_skip is not None:
            self.on_skip(path, reason)


def scan_dir(
    root_path: PathLike,
    ignore_patterns: Optional[Sequence[str]] = None,
    rules: RuleTable = DEFAULT_RULES,
) -> List[Finding]:
    """Scan a directory with a one-off Scanner."""
    return Scanner(rules=rules).scan(root_path, ignore_patterns)
