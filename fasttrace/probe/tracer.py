"""
Traceroute orchestrator
"""

import logging
from typing import Callable, Optional

from ..models import HopResult, ProbeConfig, Target, TraceResult
from .base import BaseProbe
from .icmp import create_icmp_probe


logger = logging.getLogger(__name__)

ProbeFactory = Callable[[int, int], BaseProbe]


class Tracer:
    """
    Traceroute orchestrator.

    Sends one probe per hop with TTL 1, 2, 3, ... and stops when the
    destination answers or max_hops probes have been sent.
    """

    def __init__(
        self,
        config: ProbeConfig,
        probe_factory: ProbeFactory = create_icmp_probe
    ):
        self.config = config
        self._probe_factory = probe_factory

    def _create_probe(self, target: Target) -> BaseProbe:
        """Create probe instance for the target's address family"""
        return self._probe_factory(target.version, self.config.timeout_ms)

    def trace(
        self,
        target: Target,
        on_hop: Optional[Callable[[HopResult], None]] = None
    ) -> TraceResult:
        """
        Execute traceroute.

        Args:
            target: Resolved destination
            on_hop: Optional callback for real-time hop updates

        Returns:
            TraceResult with one HopResult per probe sent
        """
        trace = TraceResult(target=target)

        with self._create_probe(target) as probe:
            ttl = 1
            while True:
                result = probe.probe(target.address, ttl)
                logger.debug("ttl=%d status=%s address=%s elapsed=%s",
                             ttl, result.status.value, result.address, result.elapsed_ms)

                hop = HopResult(hop=ttl, result=result)
                trace.hops.append(hop)

                if on_hop:
                    on_hop(hop)

                ttl += 1

                if result.reached_destination:
                    trace.reached = True
                    break
                if ttl > self.config.max_hops:
                    break

        return trace
