"""Rendering of findings as text, JSON and CSV."""

import csv
import io
import json
from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..core.scanner import Finding, ScanResult


def format_json(findings: Sequence[Finding]) -> str:
    return json.dumps([f.to_dict() for f in findings], indent=2)


def format_csv(findings: Sequence[Finding]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")

    buffer.write("File,Rule,LineNumber,LineContent\n")
    for f in findings:
        writer.writerow([f.file, f.rule, f.line_num, f.line_text])

    return buffer.getvalue()


def display_scan_header(console: Console, target: str, pipeline_type: str, output_format: str) -> None:
    console.print(Panel.fit(
        f"[bold cyan]📊 Scanning for security issues...[/bold cyan]\n"
        f"Path: [yellow]{escape(target)}[/yellow]\n"
        f"Type: {escape(pipeline_type)}\n"
        f"Output format: {escape(output_format)}",
        border_style="cyan",
    ))


def display_findings(console: Console, findings: Sequence[Finding]) -> None:
    """Print findings as a numbered list with a closing warning."""
    if not findings:
        console.print("[bold green]✅ Scan completed. No security issues found.[/bold green]")
        return

    console.print(f"[bold red]🔴 Found {len(findings)} potential security issues:[/bold red]")
    console.print()

    for i, f in enumerate(findings, 1):
        console.print(f"[bold]{i})[/bold] [red]{escape(f.rule)}[/red] (line {f.line_num})")
        console.print(f"   [dim]File:[/dim] {escape(f.file)}")
        console.print(f"   [dim]Content:[/dim] [yellow]{escape(f.line_text)}[/yellow]")
        console.print()

    console.print(
        "[bold yellow]⚠️  Warning: Review these potential issues and ensure "
        "no sensitive information is committed.[/bold yellow]"
    )
    console.print(
        "[dim]   Remember to add any false positives to your ignore patterns "
        "or use a tool like git-secrets.[/dim]"
    )


def display_summary(console: Console, result: ScanResult, shown: int) -> None:
    """Print traversal statistics for a finished scan."""
    stats = result.stats

    table = Table(title="Scan Summary", show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white", justify="right")

    table.add_row("Files scanned", str(stats.files_scanned))
    table.add_row("Files ignored", str(stats.files_ignored))
    table.add_row("Directories pruned", str(stats.dirs_pruned))
    table.add_row("Oversize files", str(stats.files_oversize))
    table.add_row("Binary files", str(stats.files_binary))
    table.add_row("Unreadable entries", str(stats.entries_unreadable))
    table.add_row("Findings (total)", str(result.total_findings))
    table.add_row("Findings (shown)", str(shown))
    table.add_row("Duration", f"{result.duration_seconds:.2f}s")

    console.print(table)
