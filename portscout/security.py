"""
Security Heuristics Module

Flags open ports that are commonly associated with security risks when
exposed. The assessment is a pure function of the open-port list: the
same ports always produce the same findings in the same order.

This is not a vulnerability scanner. It only looks at which ports are
open, never at what the services actually do.

Usage:
    findings = assess_open_ports(result.open_ports)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from portscout.port_scanner import OpenPortInfo


class Severity(Enum):
    """Finding severity levels following CVSS-style categorization."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


@dataclass(frozen=True)
class RiskRule:
    """A warning template applied to a group of ports."""
    title: str
    severity: Severity
    message: str
    remediation: str


@dataclass(frozen=True)
class Finding:
    """A single security recommendation tied to an open port."""
    title: str
    severity: Severity
    description: str
    port: int = 0
    remediation: str = ""

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON reporting."""
        result: dict = {
            "title": self.title,
            "severity": self.severity.value,
            "description": self.description,
        }
        if self.port:
            result["port"] = self.port
        if self.remediation:
            result["remediation"] = self.remediation
        return result


CLEARTEXT_RULE = RiskRule(
    title="Unencrypted protocol",
    severity=Severity.HIGH,
    message="uses unencrypted communication",
    remediation="Replace with an encrypted alternative such as SFTP or SSH.",
)

REMOTE_DESKTOP_RULE = RiskRule(
    title="Remote desktop exposed",
    severity=Severity.HIGH,
    message="exposed - ensure strong authentication",
    remediation="Restrict access with a VPN or firewall and enforce NLA.",
)

DATABASE_RULE = RiskRule(
    title="Database exposed",
    severity=Severity.MEDIUM,
    message="- database should not be publicly accessible",
    remediation="Bind the database to a private interface or firewall it.",
)

# Ports that trigger a recommendation when found open.
RISKY_PORT_RULES: dict[int, RiskRule] = {
    21: CLEARTEXT_RULE,
    23: CLEARTEXT_RULE,
    3389: REMOTE_DESKTOP_RULE,
    3306: DATABASE_RULE,
    5432: DATABASE_RULE,
    27017: DATABASE_RULE,
}

NO_CONCERNS_MESSAGE = "No obvious security concerns detected."


def assess_open_ports(open_ports: Iterable[OpenPortInfo]) -> list[Finding]:
    """
    Produce one finding per open port that matches a risk rule.

    Args:
        open_ports: Open ports in any order.

    Returns:
        Findings ordered by port number.
    """
    findings: list[Finding] = []

    for info in sorted(open_ports, key=lambda p: p.port):
        rule = RISKY_PORT_RULES.get(info.port)
        if rule is None:
            continue
        findings.append(
            Finding(
                title=rule.title,
                severity=rule.severity,
                description=f"Port {info.port} ({info.service}) {rule.message}",
                port=info.port,
                remediation=rule.remediation,
            )
        )

    return findings
