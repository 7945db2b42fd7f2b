#!/usr/bin/env python3
"""
Basic Port Scan Example
=======================

Demonstrates how to use the PortScanner class to scan localhost for
a handful of ports and print both report formats.

DISCLAIMER: Only scan hosts you own or have explicit authorization to test.

Usage:
    python examples/basic_scan.py
"""

from portscout.port_scanner import PortScanner
from portscout.report_generator import ReportGenerator


def main() -> None:
    # Create a scanner targeting localhost with a short timeout
    scanner = PortScanner(target="127.0.0.1", timeout=0.5, max_threads=20)

    print("Scanning localhost...")
    result = scanner.scan(ports=[22, 80, 443, 3000, 5432, 8080, 8443])

    print(f"\nTarget:    {result.target.input} ({result.target.resolved_address})")
    print(f"Duration:  {result.duration_seconds}s")
    print(f"Scanned:   {result.ports_scanned} ports")
    print(f"Open:      {result.total_open} ports\n")

    report = ReportGenerator(result)
    print(report.build("text"))

    # The structured form is what downstream tooling should consume
    if result.open_ports:
        print(report.build("structured"))


if __name__ == "__main__":
    main()
