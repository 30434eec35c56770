"""
Destination address resolution
"""

import ipaddress
import logging
import socket

from .models import Target


logger = logging.getLogger(__name__)


class ResolutionError(Exception):
    """Raised when the destination cannot be turned into an address"""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Unable to resolve hostname {address}.")


def resolve_target(address: str, resolve_hostname: bool = True) -> Target:
    """
    Turn a user supplied destination into a Target.

    Literal IPv4/IPv6 addresses are used as-is without any lookup.
    Names are resolved and the first returned address is used; the
    canonical name becomes the display hostname unless
    resolve_hostname is False.

    Raises:
        ResolutionError: if the name cannot be resolved
    """
    try:
        literal = ipaddress.ip_address(address)
    except ValueError:
        pass
    else:
        return Target(address=str(literal))

    try:
        infos = socket.getaddrinfo(address, None, flags=socket.AI_CANONNAME)
    except (socket.gaierror, UnicodeError) as e:
        logger.debug("Lookup of %s failed: %s", address, e)
        raise ResolutionError(address) from e

    if not infos:
        raise ResolutionError(address)

    # Only the first entry carries the canonical name
    _, _, _, canonname, sockaddr = infos[0]
    resolved = sockaddr[0]
    logger.debug("Resolved %s to %s (canonical name %r)", address, resolved, canonname)

    hostname = None
    if resolve_hostname:
        hostname = canonname or address

    return Target(address=resolved, hostname=hostname)
