"""
TCP Port Scanner Module

Performs TCP connect scans against a single target to identify open
ports and name the services behind them.

This module uses full TCP handshakes (connect scan) rather than SYN
scans, so it does not require root privileges but is visible to
intrusion detection systems.

Usage:
    scanner = PortScanner("192.168.1.1", timeout=1.0)
    result = scanner.scan(ports=[22, 80, 443, 8080])
"""

from __future__ import annotations

import logging
import math
import socket
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Sequence

from portscout.concurrency import bounded_map
from portscout.ports import COMMON_PORTS
from portscout.service_detector import BannerProbe, ServiceDetector
from portscout.targets import ScanTarget, resolve_target

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 1.0
DEFAULT_MAX_THREADS = 100


class PortState(Enum):
    """Enumeration of possible port states."""
    OPEN = "open"
    CLOSED = "closed"
    FILTERED = "filtered"


class ErrorKind(Enum):
    """Why a connect attempt did not produce an open port."""
    NONE = "none"
    TIMEOUT = "timeout"
    REFUSED = "refused"
    OTHER = "error"


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of probing a single port. Created once, never mutated."""
    port: int
    is_open: bool
    service: str = ""
    error_kind: ErrorKind = ErrorKind.NONE
    response_time_ms: float = 0.0

    @property
    def state(self) -> PortState:
        if self.is_open:
            return PortState.OPEN
        if self.error_kind is ErrorKind.TIMEOUT:
            return PortState.FILTERED
        return PortState.CLOSED


@dataclass(frozen=True)
class OpenPortInfo:
    """An open port as it appears in reports."""
    port: int
    service: str
    state: str = PortState.OPEN.value

    def to_dict(self) -> dict[str, Any]:
        return {"port": self.port, "service": self.service, "state": self.state}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OpenPortInfo:
        return cls(
            port=int(data["port"]),
            service=str(data["service"]),
            state=str(data.get("state", PortState.OPEN.value)),
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ScanResult:
    """
    Aggregated results from a port scan.

    Workers hand their outcomes to ``record``, which is the only mutation
    path and is serialized by an internal lock. ``finalize`` imposes the
    ascending port order that reports rely on.
    """
    target: ScanTarget
    scan_started_at: datetime = field(default_factory=_utcnow)
    scan_finished_at: datetime | None = None
    open_ports: list[OpenPortInfo] = field(default_factory=list)
    ports_scanned: int = 0
    closed_count: int = 0
    filtered_count: int = 0
    error_count: int = 0
    interrupted: bool = False
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def record(self, outcome: ProbeOutcome) -> None:
        """Fold one probe outcome into the aggregate."""
        with self._lock:
            self.ports_scanned += 1
            if outcome.is_open:
                self.open_ports.append(
                    OpenPortInfo(port=outcome.port, service=outcome.service)
                )
            elif outcome.error_kind is ErrorKind.TIMEOUT:
                self.filtered_count += 1
            elif outcome.error_kind is ErrorKind.OTHER:
                self.error_count += 1
            else:
                self.closed_count += 1

    def finalize(self, interrupted: bool = False) -> ScanResult:
        """Sort open ports ascending and stamp the finish time."""
        with self._lock:
            self.open_ports.sort(key=lambda p: p.port)
            if self.scan_finished_at is None:
                self.scan_finished_at = _utcnow()
            self.interrupted = self.interrupted or interrupted
        return self

    @property
    def total_open(self) -> int:
        return len(self.open_ports)

    @property
    def scan_timestamp(self) -> datetime:
        """When the scan completed, or started if it never finished."""
        return self.scan_finished_at or self.scan_started_at

    @property
    def duration_seconds(self) -> float:
        """Total scan duration in seconds."""
        if self.scan_finished_at is None:
            return 0.0
        elapsed = self.scan_finished_at - self.scan_started_at
        return round(elapsed.total_seconds(), 2)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON reporting."""
        return {
            "target": self.target.input,
            "resolved_address": self.target.resolved_address,
            "scan_started_at": self.scan_started_at.isoformat(),
            "scan_timestamp": self.scan_timestamp.isoformat(),
            "scan_duration_seconds": self.duration_seconds,
            "total_ports_scanned": self.ports_scanned,
            "interrupted": self.interrupted,
            "open_ports": [p.to_dict() for p in self.open_ports],
            "total_open": self.total_open,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScanResult:
        """Rebuild a result from the output of ``to_dict``."""
        address = data["resolved_address"]
        family = socket.AF_INET6 if ":" in address else socket.AF_INET
        finished = datetime.fromisoformat(data["scan_timestamp"])
        started = datetime.fromisoformat(
            data.get("scan_started_at", data["scan_timestamp"])
        )
        return cls(
            target=ScanTarget(
                input=data["target"], resolved_address=address, family=family
            ),
            scan_started_at=started,
            scan_finished_at=finished,
            open_ports=[OpenPortInfo.from_dict(p) for p in data["open_ports"]],
            ports_scanned=int(data.get("total_ports_scanned", 0)),
            interrupted=bool(data.get("interrupted", False)),
        )


class PortScanner:
    """
    TCP connect port scanner with service detection.

    Performs a full TCP handshake per port on a bounded thread pool. Open
    ports are named by a ``ServiceDetector`` inside the same worker, so a
    slow banner grab never holds up the rest of the scan.

    Args:
        target: Hostname or IP address to scan.
        timeout: Connection timeout in seconds per port.
        max_threads: Maximum concurrent connect attempts.
        probe: Banner strategy used for ports missing from the service table.
    """

    def __init__(
        self,
        target: str,
        timeout: float = DEFAULT_TIMEOUT,
        max_threads: int = DEFAULT_MAX_THREADS,
        probe: BannerProbe | None = None,
    ) -> None:
        if not math.isfinite(timeout) or timeout <= 0:
            raise ValueError("timeout must be a positive, finite number")
        if max_threads < 1:
            raise ValueError("max_threads must be >= 1")

        self.target = target
        self.timeout = timeout
        self.max_threads = max_threads
        self.probe = probe
        self._resolved: ScanTarget | None = None
        self._detector: ServiceDetector | None = None
        self._cancel_event = threading.Event()

    @property
    def resolved(self) -> ScanTarget | None:
        return self._resolved

    def resolve_target(self) -> ScanTarget:
        """Resolve the target and bind a service detector to it."""
        self._resolved = resolve_target(self.target)
        self._detector = ServiceDetector(
            self._resolved.resolved_address,
            family=self._resolved.family,
            probe=self.probe,
        )
        return self._resolved

    def cancel(self) -> None:
        """Stop dispatching new probes. Safe to call from any thread."""
        self._cancel_event.set()

    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def _connect(self, port: int) -> socket.socket:
        if self._resolved is None:
            raise RuntimeError("resolve_target() must be called before connecting")
        return socket.create_connection(
            (self._resolved.resolved_address, port), timeout=self.timeout
        )

    def probe_port(self, port: int) -> ProbeOutcome:
        """
        Scan a single TCP port using a connect scan.

        Network failures never escape: a refusal, a timeout or any other
        socket error becomes the outcome's ``error_kind``.

        Args:
            port: Port number to scan (1-65535).

        Returns:
            ProbeOutcome with open flag, service name and error kind.
        """
        if self._resolved is None or self._detector is None:
            self.resolve_target()

        start_time = time.monotonic()

        try:
            sock = self._connect(port)
        except ConnectionRefusedError:
            return ProbeOutcome(
                port=port,
                is_open=False,
                error_kind=ErrorKind.REFUSED,
                response_time_ms=(time.monotonic() - start_time) * 1000,
            )
        except socket.timeout:
            return ProbeOutcome(
                port=port,
                is_open=False,
                error_kind=ErrorKind.TIMEOUT,
                response_time_ms=self.timeout * 1000,
            )
        except OSError as exc:
            logger.debug("Connect to port %d failed: %s", port, exc)
            return ProbeOutcome(
                port=port,
                is_open=False,
                error_kind=ErrorKind.OTHER,
                response_time_ms=(time.monotonic() - start_time) * 1000,
            )

        elapsed = (time.monotonic() - start_time) * 1000
        sock.close()

        return ProbeOutcome(
            port=port,
            is_open=True,
            service=self._detector.detect(port),
            response_time_ms=elapsed,
        )

    def scan(
        self,
        ports: Sequence[int] | None = None,
        on_outcome: Callable[[ProbeOutcome], None] | None = None,
    ) -> ScanResult:
        """
        Execute a full port scan against the target.

        Resolves the target, then probes the ports concurrently. Outcomes
        arrive in completion order; the returned result is finalized, so
        its open ports are sorted ascending.

        A ``KeyboardInterrupt`` or a call to ``cancel()`` ends the scan
        early: whatever finished is returned with ``interrupted`` set.

        Args:
            ports: Ports to scan (default: the common-port list).
            on_outcome: Called in the calling thread for every outcome.

        Returns:
            ScanResult containing the open ports and scan metadata.
        """
        target = self.resolve_target()
        target_ports = list(ports) if ports is not None else list(COMMON_PORTS)
        self._cancel_event.clear()

        result = ScanResult(target=target)
        logger.info(
            "Scanning %d ports on %s (%s) with %d threads",
            len(target_ports),
            target.input,
            target.resolved_address,
            self.max_threads,
        )

        completed = bounded_map(
            self.probe_port,
            target_ports,
            max_workers=self.max_threads,
            cancel_event=self._cancel_event,
        )
        interrupted = False
        try:
            for port, future in completed:
                try:
                    outcome = future.result()
                except Exception as exc:
                    logger.debug("Probe of port %d raised: %r", port, exc)
                    outcome = ProbeOutcome(
                        port=port, is_open=False, error_kind=ErrorKind.OTHER
                    )
                result.record(outcome)
                if on_outcome is not None:
                    on_outcome(outcome)
        except KeyboardInterrupt:
            self.cancel()
            interrupted = True
        finally:
            completed.close()

        if self.is_cancelled():
            interrupted = True
            logger.warning(
                "Scan interrupted after %d of %d ports",
                result.ports_scanned,
                len(target_ports),
            )

        result.finalize(interrupted=interrupted)
        logger.info(
            "Scan of %s finished in %ss: %d open",
            target.input,
            result.duration_seconds,
            result.total_open,
        )
        return result
