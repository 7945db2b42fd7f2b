"""
Report Generator Module

Renders a finished scan as a fixed-layout text report or as structured
JSON, and appends heuristic security recommendations for risky open
ports.

Rendering depends only on the ScanResult: timestamps come from the
result itself, so building the same report twice gives identical bytes.

Usage:
    generator = ReportGenerator(scan_result)
    print(generator.build("text"))
    generator.write("report.json", "structured")
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from portscout.errors import OutputWriteError
from portscout.port_scanner import ScanResult
from portscout.security import NO_CONCERNS_MESSAGE, assess_open_ports

TEXT_FORMAT = "text"
STRUCTURED_FORMAT = "structured"

# "json" is accepted as an alias for the structured format.
REPORT_FORMATS: dict[str, str] = {
    "text": TEXT_FORMAT,
    "structured": STRUCTURED_FORMAT,
    "json": STRUCTURED_FORMAT,
}

RULE_WIDTH = 60
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %Z"
NO_OPEN_PORTS_MESSAGE = "No open ports found."
INTERRUPTED_MESSAGE = "Scan interrupted: results are partial."


class ReportGenerator:
    """
    Text and structured report renderer for one scan.

    Args:
        result: A finalized scan result.
    """

    def __init__(self, result: ScanResult) -> None:
        self.result = result

    def build(self, fmt: str = TEXT_FORMAT) -> str:
        """
        Render the report.

        Args:
            fmt: "text", "structured" or its alias "json".

        Returns:
            The rendered report.
        """
        match REPORT_FORMATS.get(fmt):
            case "text":
                return self.build_text()
            case "structured":
                return self.build_structured()
            case _:
                raise ValueError(f"Unsupported report format: {fmt}")

    def build_report_dict(self) -> dict[str, Any]:
        """Build the structured report as a nested dictionary."""
        report = self.result.to_dict()
        report["security_findings"] = [
            f.to_dict() for f in assess_open_ports(self.result.open_ports)
        ]
        return report

    def build_structured(self) -> str:
        return json.dumps(self.build_report_dict(), indent=2)

    def build_text(self) -> str:
        """Render the fixed-layout, tab-separated text report."""
        result = self.result
        target = result.target
        rule = "=" * RULE_WIDTH
        divider = "-" * RULE_WIDTH

        lines: list[str] = [
            rule,
            "Scan Report",
            rule,
            f"Target: {target.input} ({target.resolved_address})",
            f"Scan completed: {result.scan_timestamp.strftime(TIMESTAMP_FORMAT)}",
            f"Ports scanned: {result.ports_scanned} in {result.duration_seconds}s",
            f"Open ports found: {result.total_open}",
        ]
        if result.interrupted:
            lines.append(INTERRUPTED_MESSAGE)
        lines += [rule, ""]

        if result.open_ports:
            lines.append("PORT\t\tSTATE\t\tSERVICE")
            lines.append(divider)
            for info in result.open_ports:
                lines.append(f"{info.port}\t\t{info.state}\t\t{info.service}")
        else:
            lines.append(NO_OPEN_PORTS_MESSAGE)

        lines += ["", "Security Recommendations:", divider]

        findings = assess_open_ports(result.open_ports)
        if findings:
            lines.extend(f"[!] {f.description}" for f in findings)
        else:
            lines.append(NO_CONCERNS_MESSAGE)

        return "\n".join(lines) + "\n"

    def write(self, output_path: str, fmt: str = TEXT_FORMAT) -> str:
        """
        Render the report and write it to a file.

        Args:
            output_path: Destination path; parent directories are created.
            fmt: Report format, as for ``build``.

        Returns:
            Absolute path to the written report.

        Raises:
            OutputWriteError: If the file cannot be created or written.
        """
        content = self.build(fmt)
        path = Path(output_path).resolve()

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as exc:
            raise OutputWriteError(str(path), exc.strerror or str(exc)) from exc

        return str(path)


def parse_structured(text: str) -> ScanResult:
    """Rebuild a ScanResult from a structured (JSON) report."""
    return ScanResult.from_dict(json.loads(text))
