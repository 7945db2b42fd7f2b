"""
CLI Interface Module

Command-line front end for portscout built on argparse, with Rich for
terminal formatting. Everything except the report itself goes to
stderr, so stdout can be piped or redirected cleanly.

Usage:
    portscout -t 192.168.1.1
    portscout -t example.com -p 1-1000
    portscout -t 10.0.0.1 -p 80,443,8080 --format structured
    portscout -t localhost --all -o report.txt
"""

from __future__ import annotations

import argparse
import logging
import math
import sys

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from portscout import __version__
from portscout.errors import InvalidPortSpec, OutputWriteError, ResolutionError
from portscout.port_scanner import (
    DEFAULT_MAX_THREADS,
    DEFAULT_TIMEOUT,
    PortScanner,
    PortState,
    ProbeOutcome,
    ScanResult,
)
from portscout.ports import build_port_set
from portscout.report_generator import ReportGenerator
from portscout.security import Severity, assess_open_ports

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

BANNER = r"""
                  _                         _
  _ __   ___  _ __| |_ ___  ___ ___  _   _| |_
 | '_ \ / _ \| '__| __/ __|/ __/ _ \| | | | __|
 | |_) | (_) | |  | |_\__ \ (_| (_) | |_| | |_
 | .__/ \___/|_|   \__|___/\___\___/ \__,_|\__|
 |_|
"""

DISCLAIMER = (
    "[bold red]DISCLAIMER:[/bold red] Only scan networks you own or have "
    "explicit permission to test.\nUnauthorized port scanning may be "
    "illegal in your jurisdiction."
)


def get_console() -> Console:
    """Console for status output; the report itself goes to stdout."""
    return Console(stderr=True)


def setup_logging(console: Console, verbose: bool = False) -> None:
    """Route library logging through Rich on the given console."""
    handler = RichHandler(console=console, show_path=False, markup=False)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )


def print_banner(console: Console) -> None:
    """Print the application banner and disclaimer."""
    console.print(
        Panel(
            f"[bold cyan]{BANNER}[/bold cyan]\n"
            f"[dim]v{__version__} | TCP Port Scanner[/dim]",
            border_style="cyan",
            box=box.ROUNDED,
            padding=(0, 2),
        )
    )
    console.print(f"\n{DISCLAIMER}\n")


def severity_color(severity: Severity) -> str:
    """Map severity level to Rich color string."""
    match severity:
        case Severity.CRITICAL:
            return "bold red"
        case Severity.HIGH:
            return "red"
        case Severity.MEDIUM:
            return "yellow"
        case Severity.LOW:
            return "blue"
        case Severity.INFO:
            return "dim"


def print_outcome(console: Console, outcome: ProbeOutcome) -> None:
    """Print a one-line progress entry for a finished probe."""
    match outcome.state:
        case PortState.OPEN:
            console.print(
                f"[green][+] Port {outcome.port} is OPEN - {escape(outcome.service)}[/green]",
                highlight=False,
            )
        case PortState.FILTERED:
            console.print(
                f"[yellow][!] Port {outcome.port} timed out[/yellow]",
                highlight=False,
            )
        case PortState.CLOSED:
            console.print(
                f"[red][-] Port {outcome.port} is CLOSED "
                f"({outcome.error_kind.value})[/red]",
                highlight=False,
            )


def build_parser() -> argparse.ArgumentParser:
    """
    Construct the CLI argument parser.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="portscout",
        description="portscout: TCP port scanner with service detection",
        epilog=(
            "Examples:\n"
            "  portscout -t 192.168.1.1                  # Scan common ports\n"
            "  portscout -t example.com -p 1-1000        # Scan ports 1-1000\n"
            "  portscout -t 10.0.0.1 -p 80,443,8080      # Scan specific ports\n"
            "  portscout -t localhost --all              # Scan all 65535 ports\n"
            "  portscout -t 192.168.1.1 -o report.json --format structured\n"
            "\n"
            "DISCLAIMER: Only scan networks you own or have permission to test."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"portscout v{__version__}",
    )
    parser.add_argument(
        "-t", "--target",
        required=True,
        help="Target hostname or IP address",
    )

    port_group = parser.add_mutually_exclusive_group()
    port_group.add_argument(
        "-p", "--ports",
        type=str,
        default=None,
        help="Ports and ranges, e.g. '22,80,443' or '1-1024,8080'",
    )
    port_group.add_argument(
        "--all",
        action="store_true",
        help="Scan all 65535 ports (slow!)",
    )
    port_group.add_argument(
        "--common",
        action="store_true",
        help="Scan common ports only (default)",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Connection timeout per port in seconds (default: {DEFAULT_TIMEOUT})",
    )
    parser.add_argument(
        "--threads",
        type=int,
        default=DEFAULT_MAX_THREADS,
        help=f"Max concurrent connect attempts (default: {DEFAULT_MAX_THREADS})",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print every port as it completes and enable debug logging",
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Also write the report to this file",
    )
    parser.add_argument(
        "--format",
        choices=["text", "structured", "json"],
        default="text",
        help="Report format (default: text; 'json' is an alias for structured)",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress banner and status output",
    )

    return parser


def run_scan(
    scanner: PortScanner,
    ports: tuple[int, ...],
    console: Console,
    verbose: bool,
    quiet: bool,
) -> ScanResult:
    """Run the scan with either per-port lines or a progress bar."""
    if verbose:
        return scanner.scan(
            ports=ports, on_outcome=lambda o: print_outcome(console, o)
        )

    if quiet:
        return scanner.scan(ports=ports)

    with Progress(
        SpinnerColumn(),
        TextColumn("[bold cyan]{task.description}"),
        BarColumn(),
        TextColumn("[bold]{task.percentage:>3.0f}%"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(f"Scanning {scanner.target}...", total=len(ports))
        return scanner.scan(
            ports=ports, on_outcome=lambda _: progress.advance(task)
        )


def main(argv: list[str] | None = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv).

    Returns:
        Process exit status.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.threads < 1:
        parser.error("--threads must be >= 1")
    if not math.isfinite(args.timeout) or args.timeout <= 0:
        parser.error("--timeout must be a positive number of seconds")

    console = get_console()
    setup_logging(console, verbose=args.verbose)

    if not args.quiet:
        print_banner(console)

    try:
        ports = build_port_set(args.ports, all_ports=args.all, common=args.common)
    except InvalidPortSpec as exc:
        console.print(f"[red][!] {escape(str(exc))}[/red]", highlight=False)
        return EXIT_FAILURE

    if args.all and not args.quiet:
        console.print(
            "[yellow][!] Scanning all 65535 ports - this will take a while![/yellow]"
        )

    scanner = PortScanner(
        target=args.target,
        timeout=args.timeout,
        max_threads=args.threads,
    )

    try:
        result = run_scan(scanner, ports, console, args.verbose, args.quiet)
    except ResolutionError as exc:
        console.print(f"[red][!] Error: {escape(str(exc))}[/red]", highlight=False)
        return EXIT_FAILURE

    report = ReportGenerator(result)
    sys.stdout.write(report.build(args.format))
    sys.stdout.flush()

    if not args.quiet:
        for finding in assess_open_ports(result.open_ports):
            color = severity_color(finding.severity)
            console.print(
                f"[{color}][{finding.severity.value.upper()}][/{color}] "
                f"{finding.title}: [dim]{finding.remediation}[/dim]",
                highlight=False,
            )

    status = EXIT_INTERRUPTED if result.interrupted else EXIT_OK

    if args.output:
        try:
            path = report.write(args.output, args.format)
        except OutputWriteError as exc:
            console.print(f"[red][!] {escape(str(exc))}[/red]", highlight=False)
            return EXIT_FAILURE if status == EXIT_OK else status
        if not args.quiet:
            console.print(f"\n[green][+] Report saved to: {path}[/green]")

    if result.interrupted:
        console.print("\n[yellow][!] Scan interrupted by user[/yellow]")

    return status


def run() -> None:
    """Console-script wrapper around ``main``."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        Console(stderr=True).print("\n\n[yellow][!] Scan interrupted by user[/yellow]")
        sys.exit(EXIT_INTERRUPTED)
