#!/usr/bin/env python3
"""
portscout - TCP Port Scanner with Service Detection

Entry point for the portscout CLI application.

DISCLAIMER: This tool is for authorized security testing and educational
purposes only. Unauthorized access to computer systems is illegal.
Always obtain written permission before scanning any network or host.

Usage:
    python main.py -t <target> [options]

Examples:
    python main.py -t 192.168.1.1
    python main.py -t example.com -p 1-1000
    python main.py -t 10.0.0.1 -p 22,80,443 --format structured
    python main.py -t localhost --all -o report.txt
"""

from portscout.cli import run


if __name__ == "__main__":
    run()
