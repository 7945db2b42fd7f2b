"""
Exception Taxonomy

Fatal errors raised before any probing starts, plus the report-writing
failure. Per-port network failures are not exceptions: they are recorded
as ``ErrorKind`` values on each ``ProbeOutcome``.
"""

from __future__ import annotations


class PortscoutError(Exception):
    """Base class for all portscout errors."""


class ResolutionError(PortscoutError):
    """The target hostname or address could not be resolved."""

    def __init__(self, target: str, reason: str = "") -> None:
        self.target = target
        self.reason = reason
        message = f"Cannot resolve target '{target}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class InvalidPortSpec(PortscoutError, ValueError):
    """A port specification term is malformed or out of range."""

    def __init__(self, spec: str, term: str = "", reason: str = "") -> None:
        self.spec = spec
        self.term = term
        self.reason = reason
        detail = f" (term '{term}')" if term else ""
        message = f"Invalid port specification '{spec}'{detail}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class OutputWriteError(PortscoutError):
    """The rendered report could not be written to disk."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        self.reason = reason
        message = f"Cannot write report to '{path}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)
