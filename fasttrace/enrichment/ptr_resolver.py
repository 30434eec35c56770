"""
PTR (reverse DNS) resolver
"""

import logging
from typing import Optional

import dns.exception
import dns.resolver


logger = logging.getLogger(__name__)


class PTRResolver:
    """
    PTR record resolver.

    Performs reverse DNS lookups to get hostnames for hop addresses.
    Lookups never raise: any DNS failure yields None so the caller can
    fall back to the bare address.
    """

    def __init__(self, timeout: float = 2.0):
        self.timeout = timeout
        self._resolver: Optional[dns.resolver.Resolver] = None
        self._cache: dict[str, Optional[str]] = {}

    def _get_resolver(self) -> dns.resolver.Resolver:
        if self._resolver is None:
            self._resolver = dns.resolver.Resolver()
            self._resolver.timeout = self.timeout
            self._resolver.lifetime = self.timeout
        return self._resolver

    def _resolve_uncached(self, ip: str) -> Optional[str]:
        try:
            answers = self._get_resolver().resolve_address(ip)
        except dns.exception.DNSException as e:
            logger.debug("PTR lookup for %s failed: %s", ip, e)
            return None

        for rdata in answers:
            return rdata.target.to_text(omit_final_dot=True)
        return None

    def resolve(self, ip: str) -> Optional[str]:
        """
        PTR lookup for a single IP.

        Args:
            ip: IP address to resolve

        Returns:
            Hostname or None if not found
        """
        if not ip:
            return None

        if ip not in self._cache:
            self._cache[ip] = self._resolve_uncached(ip)
        return self._cache[ip]
