"""
Target Resolver

Turns a hostname or IP literal into the concrete address every probe
connects to. Resolution happens once, before any port is touched, and a
failure aborts the scan.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass

from portscout.errors import ResolutionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanTarget:
    """A scan target and the address it resolved to."""
    input: str
    resolved_address: str
    family: int = socket.AF_INET


def resolve_target(target: str) -> ScanTarget:
    """
    Resolve a hostname or IPv4/IPv6 literal.

    Uses getaddrinfo so both address families are supported; the first
    stream-socket address returned by the platform resolver is used.

    Args:
        target: Hostname or IP address as typed by the operator.

    Returns:
        ScanTarget carrying the original input and resolved address.

    Raises:
        ResolutionError: If the name is empty or cannot be resolved.
    """
    name = target.strip()
    if not name:
        raise ResolutionError(target, "empty target")

    try:
        infos = socket.getaddrinfo(name, None, type=socket.SOCK_STREAM)
    except socket.gaierror as exc:
        raise ResolutionError(name, str(exc)) from exc
    except UnicodeError as exc:
        # IDNA encoding rejects labels that are too long or empty
        raise ResolutionError(name, f"invalid hostname ({exc})") from exc

    if not infos:
        raise ResolutionError(name, "no addresses returned")

    family, _, _, _, sockaddr = infos[0]
    address = sockaddr[0]
    logger.info("Resolved %s to %s", name, address)
    return ScanTarget(input=name, resolved_address=address, family=family)
