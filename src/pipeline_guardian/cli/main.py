"""CLI entry point for Pipeline Guardian."""

import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from ..core.filters import PIPELINE_TYPES, filter_by_pipeline_type, filter_findings
from ..core.scanner import Scanner
from ..utils.config import OUTPUT_FORMATS, Config, init_config
from ..utils.exceptions import ConfigError, OutputError, PipelineGuardianError
from ..utils.logger import get_logger, setup_logging
from ..version import VERSION
from .output import display_findings, display_scan_header, display_summary, format_csv, format_json

load_dotenv()

console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FINDINGS = 1
EXIT_ERROR = 2


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="Pipeline Guardian")
@click.option("--config", type=click.Path(exists=True, dir_okay=False), help="Configuration file path")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Write logs to file")
@click.pass_context
def cli(ctx, config, verbose, log_file):
    """
    Pipeline Guardian - find credentials committed to CI/CD repositories.

    \b
    Examples:
        # Scan the current directory
        pipeline-guardian scan

        # Scan a workflow directory, JSON output
        pipeline-guardian scan --path .github/workflows --output json

        # Only GitHub Actions files
        pipeline-guardian scan --type github-actions
    """
    try:
        cfg = init_config(Path(config) if config else None)
    except ConfigError as e:
        err_console.print(f"[red]❌ Configuration Error:[/red]\n{escape(str(e))}")
        sys.exit(EXIT_ERROR)

    verbose = verbose or cfg.output.verbose
    setup_logging(
        level="DEBUG" if verbose else "WARNING",
        log_file=Path(log_file) if log_file else None,
        verbose=verbose,
    )
    for source in cfg.sources:
        logger.debug(f"Using config file: {source}")

    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg
    ctx.obj["verbose"] = verbose

    if ctx.invoked_subcommand is None:
        _print_quick_start()


def _print_quick_start() -> None:
    console.print("[bold cyan]🛡️  Pipeline Guardian[/bold cyan]: your DevSecOps sidekick")
    console.print()
    console.print("[bold]Quick Start:[/bold]")
    console.print("  pipeline-guardian scan            - Scan for secrets in current directory")
    console.print("  pipeline-guardian scan --path ./  - Scan specific directory")
    console.print("  pipeline-guardian config show     - Show effective configuration")
    console.print()
    console.print("[dim]Run 'pipeline-guardian --help' for all commands.[/dim]")


@cli.command()
@click.option("--path", "-p", "scan_path", default=".", show_default=True, help="Directory to scan")
@click.option("--type", "-t", "scan_type", type=click.Choice(list(PIPELINE_TYPES)), default="auto", show_default=True, help="Type of pipeline files to report on")
@click.option("--output", "-o", "output_format", type=click.Choice(OUTPUT_FORMATS, case_sensitive=False), help="Output format (default: from config, text)")
@click.option("--ignore", "-i", multiple=True, help="Base-name glob to ignore (repeatable, replaces the configured list)")
@click.option("--file-pattern", default="", help="Only report files whose base name matches this glob")
@click.option("--rule", "rules", multiple=True, help="Only report these rule names (repeatable, case-insensitive)")
@click.option("--output-file", "-f", type=click.Path(dir_okay=False), help="Write output to file")
@click.option("--fail-on-findings", is_flag=True, help="Exit with code 1 when anything is found")
@click.pass_context
def scan(ctx, scan_path, scan_type, output_format, ignore, file_pattern, rules, output_file, fail_on_findings):
    """
    Scan a directory for accidentally committed secrets.

    \b
    Examples:
        pipeline-guardian scan --path ./.github/workflows
        pipeline-guardian scan --type github-actions --output json
        pipeline-guardian scan -i .git -i dist --rule "AWS Access Key"

    \b
    Exit Codes:
        0 - Scan completed
        1 - Findings present and --fail-on-findings given
        2 - Scan or configuration error
    """
    cfg = ctx.obj.get("config") or Config()
    verbose = ctx.obj.get("verbose", False)
    output_format = (output_format or cfg.output.format).lower()
    ignore_patterns = list(ignore) if ignore else list(cfg.scan.ignore_patterns)
    target_path = Path(scan_path).resolve()

    # Machine-readable output owns stdout
    status_console = console if output_format == "text" else err_console
    display_scan_header(status_console, str(target_path), scan_type, output_format)

    try:
        scanner = Scanner(
            rules=cfg.rule_table(),
            max_file_size=cfg.scan.max_file_size,
            max_line_length=cfg.scan.max_line_length,
        )
        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), TimeElapsedColumn(), console=status_console, transient=True) as progress:
            task = progress.add_task("🔍 Scanning...", total=None)
            result = scanner.run(target_path, ignore_patterns)
            progress.update(task, description="✅ Scan complete")

        findings = filter_by_pipeline_type(result.findings, scan_type)
        findings = filter_findings(findings, file_pattern, rules)

    except PipelineGuardianError as e:
        err_console.print(f"\n[bold red]❌ Error scanning for secrets:[/bold red]\n{escape(str(e))}")
        logger.error(f"Scan failed: {e}", exc_info=verbose)
        sys.exit(EXIT_ERROR)
    except KeyboardInterrupt:
        err_console.print("\n[yellow]⚠️  Scan interrupted[/yellow]")
        sys.exit(130)

    try:
        _render(findings, output_format, output_file)
    except OutputError as e:
        err_console.print(f"[red]❌ Could not write output:[/red]\n{escape(str(e))}")
        sys.exit(EXIT_ERROR)

    if verbose:
        display_summary(err_console, result, shown=len(findings))

    if fail_on_findings and findings:
        sys.exit(EXIT_FINDINGS)
    sys.exit(EXIT_OK)


def _render(findings, output_format: str, output_file: str = None) -> None:
    try:
        _write(findings, output_format, output_file)
    except OSError as e:
        raise OutputError(
            f"Cannot write results to {output_file}",
            details={"error": e.strerror or str(e)},
            suggestion="Check that the output directory exists and is writable",
        ) from e


def _write(findings, output_format: str, output_file: str = None) -> None:
    if output_format == "json":
        _emit(format_json(findings), output_file)
    elif output_format == "csv":
        _emit(format_csv(findings), output_file, newline=False)
    elif output_file:
        with open(output_file, "w", encoding="utf-8") as fh:
            display_findings(Console(file=fh, no_color=True, width=120), findings)
        err_console.print(f"[green]✅ Results written to {escape(output_file)}[/green]")
    else:
        display_findings(console, findings)


def _emit(text: str, output_file: str = None, newline: bool = True) -> None:
    if output_file:
        Path(output_file).write_text(text + ("\n" if newline else ""), encoding="utf-8")
        err_console.print(f"[green]✅ Results written to {escape(output_file)}[/green]")
    else:
        click.echo(text, nl=newline)


@cli.group()
def config():
    """Manage Pipeline Guardian configuration."""
    pass


@config.command()
@click.pass_context
def show(ctx):
    """Show current configuration."""
    cfg = ctx.obj.get("config") or Config()
    console.print("\n[bold cyan]📋 Current Configuration[/bold cyan]\n")

    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="yellow")

    table.add_row("Ignore patterns", escape(", ".join(cfg.scan.ignore_patterns)) or "(none)")
    table.add_row("Max file size", f"{cfg.scan.max_file_size} bytes")
    table.add_row("Max line length", str(cfg.scan.max_line_length))
    table.add_row("Custom rules", escape(", ".join(cfg.scan.custom_rules)) or "(none)")
    table.add_row("Output format", cfg.output.format)
    table.add_row("Verbose", "✅" if cfg.output.verbose else "❌")

    console.print(table)

    if cfg.sources:
        console.print("\n[dim]Loaded from:[/dim]")
        for source in cfg.sources:
            console.print(f"  [dim]{escape(str(source))}[/dim]")
    console.print()


@config.command()
@click.option("--overwrite", is_flag=True, help="Overwrite existing config")
def init(overwrite):
    """Initialize user configuration file."""
    try:
        config_file = Config.create_user_config(overwrite=overwrite)
        console.print(f"\n[green]✅ Created: {escape(str(config_file))}[/green]\n")
    except ConfigError as e:
        err_console.print(f"\n[red]❌ Error: {escape(str(e))}[/red]\n")
        sys.exit(EXIT_ERROR)


@config.command()
@click.argument("key")
@click.pass_context
def get(ctx, key):
    """Get configuration value (section.key)."""
    cfg = ctx.obj.get("config") or Config()
    try:
        value = cfg.get(key)
    except ConfigError as e:
        err_console.print(f"\n[red]❌ {escape(str(e))}[/red]\n")
        sys.exit(EXIT_ERROR)

    if value is None:
        console.print(f"\n[yellow]⚠️  Key not found:[/yellow] {escape(key)}\n")
        sys.exit(EXIT_ERROR)
    console.print(f"\n[cyan]{escape(key)}:[/cyan] [yellow]{escape(str(value))}[/yellow]\n")


@cli.command()
def version():
    """Show version information."""
    console.print(f"\n[bold cyan]Pipeline Guardian[/bold cyan] v[yellow]{VERSION}[/yellow]\n")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
