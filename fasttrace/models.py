"""
Data models for fasttrace
"""

import ipaddress
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ProbeStatus(Enum):
    """Outcome of a single probe"""
    SUCCESS = "success"              # echo reply from the destination
    TIME_EXCEEDED = "time_exceeded"  # intermediate router
    TIMED_OUT = "timed_out"
    OTHER_FAILURE = "other_failure"


@dataclass(frozen=True)
class Target:
    """Resolved trace destination"""
    address: str
    hostname: Optional[str] = None

    @property
    def version(self) -> int:
        return ipaddress.ip_address(self.address).version

    @property
    def display(self) -> str:
        if self.hostname:
            return f"{self.hostname} [{self.address}]"
        return f"[{self.address}]"


@dataclass(frozen=True)
class ProbeConfig:
    """Validated trace settings"""
    timeout_ms: int = 1000
    max_hops: int = 30
    resolve_hostnames: bool = True

    def __post_init__(self):
        if self.timeout_ms <= 0:
            raise ValueError("timeout must be greater than 0")
        if self.max_hops <= 0:
            raise ValueError("hops must be greater than 0")


@dataclass(frozen=True)
class ProbeResult:
    """Result of a single probe"""
    status: ProbeStatus
    address: Optional[str] = None
    elapsed_ms: Optional[float] = None

    @property
    def timed_out(self) -> bool:
        return self.status is ProbeStatus.TIMED_OUT

    @property
    def reached_destination(self) -> bool:
        return self.status is ProbeStatus.SUCCESS


@dataclass(frozen=True)
class HopResult:
    """Result of probing a single hop"""
    hop: int
    result: ProbeResult


@dataclass
class TraceResult:
    """Complete trace result"""
    target: Target
    hops: list[HopResult] = field(default_factory=list)
    reached: bool = False

    @property
    def total_hops(self) -> int:
        return len(self.hops)
