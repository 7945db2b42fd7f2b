"""
portscout: a concurrent TCP port scanner with service detection.

Probes a single host with bounded-parallel TCP connect attempts, names
the services on open ports from a static table or a banner grab, and
renders text or JSON reports with basic security recommendations.

DISCLAIMER: This tool is intended for authorized security testing
and educational purposes only. Unauthorized scanning of networks you
do not own or have explicit permission to test is illegal in most
jurisdictions. Always obtain written authorization before scanning.

License: MIT
"""

__version__ = "1.0.0"
__license__ = "MIT"

from portscout.errors import (
    InvalidPortSpec,
    OutputWriteError,
    PortscoutError,
    ResolutionError,
)
from portscout.port_scanner import PortScanner, ScanResult
from portscout.ports import build_port_set, parse_ports
from portscout.report_generator import ReportGenerator
from portscout.service_detector import ServiceDetector
from portscout.targets import ScanTarget, resolve_target

__all__ = [
    "InvalidPortSpec",
    "OutputWriteError",
    "PortscoutError",
    "PortScanner",
    "ReportGenerator",
    "ResolutionError",
    "ScanResult",
    "ScanTarget",
    "ServiceDetector",
    "build_port_set",
    "parse_ports",
    "resolve_target",
]
