"""
Abstract base class for probe implementations
"""

from abc import ABC, abstractmethod
from ..models import ProbeResult


class BaseProbe(ABC):
    """Abstract base class for network probes"""

    def __init__(self, timeout_ms: int = 1000):
        self.timeout_ms = timeout_ms

    @property
    def timeout(self) -> float:
        """Timeout in seconds"""
        return self.timeout_ms / 1000

    @abstractmethod
    def probe(self, target_ip: str, ttl: int) -> ProbeResult:
        """
        Send a single probe with given TTL and return result.

        Args:
            target_ip: Target IP address (already resolved)
            ttl: Time-to-live value

        Returns:
            ProbeResult with status, responder IP and elapsed time
        """
        pass

    @abstractmethod
    def close(self):
        """Clean up resources"""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
