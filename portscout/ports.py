"""
Port Set Builder

Holds the static service-name table and expands operator port
specifications into a sorted, de-duplicated tuple of port numbers.

Grammar:
    spec := term (',' term)*
    term := PORT | PORT '-' PORT

Examples:
    parse_ports("22,80,443")     -> (22, 80, 443)
    parse_ports("80,80,1-3")     -> (1, 2, 3, 80)
    parse_ports("5-3")           -> InvalidPortSpec
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from portscout.errors import InvalidPortSpec

MIN_PORT = 1
MAX_PORT = 65535

# Well-known port-to-service mappings. Read-only for the life of the process.
SERVICE_TABLE: Mapping[int, str] = MappingProxyType({
    20: "FTP-Data",
    21: "FTP",
    22: "SSH",
    23: "Telnet",
    25: "SMTP",
    53: "DNS",
    80: "HTTP",
    110: "POP3",
    143: "IMAP",
    443: "HTTPS",
    445: "SMB",
    3306: "MySQL",
    3389: "RDP",
    5432: "PostgreSQL",
    5900: "VNC",
    8080: "HTTP-Proxy",
    8443: "HTTPS-Alt",
    27017: "MongoDB",
})

# Default scan set when no port specification is given.
COMMON_PORTS: tuple[int, ...] = tuple(sorted(SERVICE_TABLE))

ALL_PORTS_RANGE: range = range(MIN_PORT, MAX_PORT + 1)


def _parse_port(spec: str, term: str, value: str) -> int:
    value = value.strip()
    # int() would also take "+80", "8_0" and non-ASCII digits
    if not (value.isascii() and value.isdigit()):
        raise InvalidPortSpec(spec, term, f"'{value}' is not an integer")
    port = int(value)
    if not MIN_PORT <= port <= MAX_PORT:
        raise InvalidPortSpec(
            spec, term, f"{port} is outside {MIN_PORT}-{MAX_PORT}"
        )
    return port


def parse_ports(spec: str) -> tuple[int, ...]:
    """
    Parse a port specification string.

    The whole specification is rejected if any single term is bad; no
    partial port set is ever returned.

    Args:
        spec: Comma-separated ports and inclusive ranges.

    Returns:
        Ascending tuple of unique port numbers.

    Raises:
        InvalidPortSpec: On an empty spec, empty term, non-integer value,
            out-of-range port or reversed range.
    """
    if not spec or not spec.strip():
        raise InvalidPortSpec(spec, reason="empty specification")

    ports: set[int] = set()

    for raw_term in spec.split(","):
        term = raw_term.strip()
        if not term:
            raise InvalidPortSpec(spec, raw_term, "empty term")

        if "-" in term:
            start_s, end_s = term.split("-", 1)
            start = _parse_port(spec, term, start_s)
            end = _parse_port(spec, term, end_s)
            if start > end:
                raise InvalidPortSpec(spec, term, "range start exceeds end")
            ports.update(range(start, end + 1))
        else:
            ports.add(_parse_port(spec, term, term))

    return tuple(sorted(ports))


def build_port_set(
    spec: str | None = None,
    *,
    all_ports: bool = False,
    common: bool = False,
) -> tuple[int, ...]:
    """
    Select the ports to scan.

    Exactly one source applies: an explicit specification, every port, or
    the common-port list (the default when nothing is chosen).

    Raises:
        InvalidPortSpec: If more than one source is requested or the
            specification does not parse.
    """
    chosen = sum((spec is not None, all_ports, common))
    if chosen > 1:
        raise InvalidPortSpec(
            spec or "", reason="--ports, --all and --common are mutually exclusive"
        )

    if all_ports:
        return tuple(ALL_PORTS_RANGE)
    if spec is not None:
        return parse_ports(spec)
    return COMMON_PORTS
