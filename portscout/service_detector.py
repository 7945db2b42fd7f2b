"""
Service Detector

Names the service behind an open port. The static service table is
consulted first; ports missing from it fall back to a pluggable banner
probe, which by default opens a fresh connection, sends a minimal HTTP
HEAD request and pattern-matches whatever comes back.

Usage:
    detector = ServiceDetector("192.168.1.10")
    detector.detect(22)     # "SSH", no network I/O
    detector.detect(9000)   # banner grab
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from typing import Mapping, Protocol

from portscout.ports import SERVICE_TABLE

logger = logging.getLogger(__name__)

BANNER_PAYLOAD = b"HEAD / HTTP/1.0\r\n\r\n"
BANNER_TIMEOUT = 0.5
BANNER_MAX_BYTES = 1024
BANNER_PREVIEW_CHARS = 20

UNKNOWN_SERVICE = "Unknown"

# Checked in order; the first substring found wins.
BANNER_SIGNATURES: tuple[tuple[str, str], ...] = (
    ("HTTP", "HTTP/Web Server"),
    ("SSH", "SSH"),
    ("FTP", "FTP"),
)


@dataclass(frozen=True)
class Endpoint:
    """Where a banner probe should connect."""
    address: str
    port: int
    family: int = socket.AF_INET


class BannerProbe(Protocol):
    """Strategy that labels the service listening on an endpoint."""

    def detect(self, connection: Endpoint) -> str:
        ...


def classify_banner(banner: str) -> str:
    """
    Map a decoded banner to a service label.

    Matching is case-sensitive. A non-empty banner that matches nothing
    is echoed back in truncated form to help manual inspection.
    """
    for needle, label in BANNER_SIGNATURES:
        if needle in banner:
            return label
    if banner:
        return f"{UNKNOWN_SERVICE} ({banner[:BANNER_PREVIEW_CHARS]}...)"
    return UNKNOWN_SERVICE


class HttpHeadProbe:
    """
    Banner grab over a short-lived TCP connection.

    Args:
        timeout: Per-operation socket timeout in seconds.
        payload: Bytes sent immediately after connecting.
        max_bytes: Upper bound on the response read.
    """

    def __init__(
        self,
        timeout: float = BANNER_TIMEOUT,
        payload: bytes = BANNER_PAYLOAD,
        max_bytes: int = BANNER_MAX_BYTES,
    ) -> None:
        self.timeout = timeout
        self.payload = payload
        self.max_bytes = max_bytes

    def grab(self, connection: Endpoint) -> str:
        """Return the stripped banner text; raises OSError on network failure."""
        with socket.socket(connection.family, socket.SOCK_STREAM) as sock:
            sock.settimeout(self.timeout)
            sock.connect((connection.address, connection.port))
            sock.sendall(self.payload)
            data = sock.recv(self.max_bytes)
        return data.decode("utf-8", errors="ignore").strip()

    def detect(self, connection: Endpoint) -> str:
        try:
            banner = self.grab(connection)
        except OSError as exc:
            logger.debug(
                "Banner grab failed for %s:%d: %s",
                connection.address,
                connection.port,
                exc,
            )
            return UNKNOWN_SERVICE
        return classify_banner(banner)


class ServiceDetector:
    """
    Table lookup with a banner-probe fallback.

    Args:
        address: Resolved target address.
        family: Socket address family of ``address``.
        table: Port-to-name mapping consulted before any network I/O.
        probe: Fallback strategy for ports missing from ``table``.
    """

    def __init__(
        self,
        address: str,
        family: int = socket.AF_INET,
        table: Mapping[int, str] = SERVICE_TABLE,
        probe: BannerProbe | None = None,
    ) -> None:
        self.address = address
        self.family = family
        self.table = table
        self.probe = probe if probe is not None else HttpHeadProbe()

    def detect(self, port: int) -> str:
        """Return the service name for an open port."""
        name = self.table.get(port)
        if name is not None:
            return name
        return self.probe.detect(Endpoint(self.address, port, self.family))
