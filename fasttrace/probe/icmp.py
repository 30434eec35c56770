"""
Cross-platform ICMP echo probe

- Windows: Uses IcmpSendEcho API (works correctly for TTL-based traceroute)
- Linux/macOS: Uses raw sockets, IPv4 and IPv6
"""

import ctypes
import ipaddress
import logging
import os
import socket
import struct
import sys
import time
from typing import Optional

from ..models import ProbeResult, ProbeStatus
from .base import BaseProbe


logger = logging.getLogger(__name__)

# Only the size matters, the content is filler
PAYLOAD_SIZE = 32
PAYLOAD = b'a' * PAYLOAD_SIZE

# Linux <netinet/in.h>
IP_MTU_DISCOVER = getattr(socket, 'IP_MTU_DISCOVER', 10)
IP_PMTUDISC_DONT = getattr(socket, 'IP_PMTUDISC_DONT', 0)


def create_icmp_probe(version: int = 4, timeout_ms: int = 1000) -> BaseProbe:
    """Factory function to create the appropriate probe for the current OS"""
    if sys.platform == 'win32':
        if version != 4:
            raise ValueError("IPv6 destinations are not supported on Windows")
        return WindowsICMPProbe(timeout_ms)
    return LinuxICMPProbe(timeout_ms, version=version)


def same_address(a: str, b: str) -> bool:
    """Compare two textual addresses, ignoring formatting differences"""
    try:
        return ipaddress.ip_address(a) == ipaddress.ip_address(b)
    except ValueError:
        return a == b


class IP_OPTION_INFORMATION(ctypes.Structure):
    _fields_ = [
        ("Ttl", ctypes.c_uint8),
        ("Tos", ctypes.c_uint8),
        ("Flags", ctypes.c_uint8),
        ("OptionsSize", ctypes.c_uint8),
        ("OptionsData", ctypes.c_void_p),
    ]


class ICMP_ECHO_REPLY(ctypes.Structure):
    _fields_ = [
        ("Address", ctypes.c_uint32),
        ("Status", ctypes.c_uint32),
        ("RoundTripTime", ctypes.c_uint32),
        ("DataSize", ctypes.c_uint16),
        ("Reserved", ctypes.c_uint16),
        ("Data", ctypes.c_void_p),
        ("Options", IP_OPTION_INFORMATION),
    ]


class WindowsICMPProbe(BaseProbe):
    """
    ICMP probe using Windows native IcmpSendEcho API.
    This properly receives ICMP Time Exceeded messages.
    """

    IP_SUCCESS = 0
    IP_REQ_TIMED_OUT = 11010
    IP_TTL_EXPIRED_TRANSIT = 11013

    def __init__(self, timeout_ms: int = 1000):
        super().__init__(timeout_ms)
        self._handle = None
        self._iphlpapi = None
        self._load_api()

    def _load_api(self):
        """Load Windows ICMP API and open the ICMP handle"""
        import ctypes.wintypes as wintypes

        api = ctypes.WinDLL('iphlpapi', use_last_error=True)

        api.IcmpCreateFile.restype = wintypes.HANDLE
        api.IcmpCreateFile.argtypes = []

        api.IcmpSendEcho.restype = wintypes.DWORD
        api.IcmpSendEcho.argtypes = [
            wintypes.HANDLE,
            ctypes.c_uint32,
            ctypes.c_void_p,
            wintypes.WORD,
            ctypes.POINTER(IP_OPTION_INFORMATION),
            ctypes.c_void_p,
            wintypes.DWORD,
            wintypes.DWORD,
        ]

        api.IcmpCloseHandle.restype = wintypes.BOOL
        api.IcmpCloseHandle.argtypes = [wintypes.HANDLE]

        handle = api.IcmpCreateFile()
        if handle is None or handle == ctypes.c_void_p(-1).value:
            raise OSError(self._last_error(), "Failed to create ICMP handle")

        self._iphlpapi = api
        self._handle = handle
        logger.debug("Opened ICMP handle")

    def _last_error(self) -> int:
        return ctypes.get_last_error()

    def probe(self, target_ip: str, ttl: int) -> ProbeResult:
        """Send ICMP echo with specified TTL"""
        # IPAddr is the address in network byte order
        ip_int = struct.unpack('<I', socket.inet_aton(target_ip))[0]

        request_buffer = ctypes.create_string_buffer(PAYLOAD, PAYLOAD_SIZE)

        options = IP_OPTION_INFORMATION()
        options.Ttl = ttl
        options.Tos = 0
        options.Flags = 0  # don't fragment cleared
        options.OptionsSize = 0
        options.OptionsData = None

        reply_size = ctypes.sizeof(ICMP_ECHO_REPLY) + PAYLOAD_SIZE + 8
        reply_buffer = ctypes.create_string_buffer(reply_size)

        start = time.perf_counter()
        count = self._iphlpapi.IcmpSendEcho(
            self._handle,
            ip_int,
            request_buffer,
            PAYLOAD_SIZE,
            ctypes.byref(options),
            reply_buffer,
            reply_size,
            self.timeout_ms
        )
        elapsed_ms = (time.perf_counter() - start) * 1000

        reply = ICMP_ECHO_REPLY.from_buffer(reply_buffer)

        # A failed call may still leave the reply (e.g. TTL expired) in the buffer
        if count == 0 and not reply.Address:
            code = self._last_error()
        else:
            code = reply.Status

        if code == self.IP_REQ_TIMED_OUT:
            return ProbeResult(ProbeStatus.TIMED_OUT)

        if not reply.Address:
            logger.debug("IcmpSendEcho to %s failed with status %d", target_ip, code)
            return ProbeResult(ProbeStatus.OTHER_FAILURE, elapsed_ms=elapsed_ms)

        responder_ip = socket.inet_ntoa(struct.pack('<I', reply.Address))

        if code == self.IP_SUCCESS:
            status = (ProbeStatus.SUCCESS if same_address(responder_ip, target_ip)
                      else ProbeStatus.OTHER_FAILURE)
        elif code == self.IP_TTL_EXPIRED_TRANSIT:
            status = ProbeStatus.TIME_EXCEEDED
        else:
            # Unreachable and friends
            status = ProbeStatus.OTHER_FAILURE

        return ProbeResult(status=status, address=responder_ip, elapsed_ms=elapsed_ms)

    def close(self):
        """Close ICMP handle"""
        if self._handle is not None and self._iphlpapi is not None:
            self._iphlpapi.IcmpCloseHandle(self._handle)
            self._handle = None
            logger.debug("Closed ICMP handle")


class LinuxICMPProbe(BaseProbe):
    """
    ICMP probe using raw sockets for Linux/macOS.

    One raw socket is opened when the probe is created and kept until
    close(). IPv4 reads include the IP header, ICMPv6 reads do not.
    """

    ICMP_ECHO_REQUEST = 8
    ICMP_ECHO_REPLY = 0
    ICMP_TIME_EXCEEDED = 11
    ICMP_DEST_UNREACHABLE = 3

    ICMPV6_ECHO_REQUEST = 128
    ICMPV6_ECHO_REPLY = 129
    ICMPV6_TIME_EXCEEDED = 3
    ICMPV6_DEST_UNREACHABLE = 1

    IPV6_HEADER_LEN = 40

    def __init__(self, timeout_ms: int = 1000, version: int = 4,
                 sock: Optional[socket.socket] = None):
        super().__init__(timeout_ms)
        self.version = version
        self.identifier = os.getpid() & 0xFFFF
        self.sequence = 0

        if version == 6:
            self._types = (self.ICMPV6_ECHO_REQUEST, self.ICMPV6_ECHO_REPLY,
                           self.ICMPV6_TIME_EXCEEDED, self.ICMPV6_DEST_UNREACHABLE)
        else:
            self._types = (self.ICMP_ECHO_REQUEST, self.ICMP_ECHO_REPLY,
                           self.ICMP_TIME_EXCEEDED, self.ICMP_DEST_UNREACHABLE)

        self._sock = sock if sock is not None else self._open_socket()

    def _open_socket(self) -> socket.socket:
        if self.version == 6:
            family, proto = socket.AF_INET6, socket.IPPROTO_ICMPV6
        else:
            family, proto = socket.AF_INET, socket.IPPROTO_ICMP

        try:
            sock = socket.socket(family, socket.SOCK_RAW, proto)
        except PermissionError as e:
            raise PermissionError(
                "Root privileges required. Please run with sudo."
            ) from e

        if self.version == 4 and sys.platform.startswith('linux'):
            sock.setsockopt(socket.IPPROTO_IP, IP_MTU_DISCOVER, IP_PMTUDISC_DONT)

        logger.debug("Opened raw ICMPv%d socket", self.version)
        return sock

    def _checksum(self, data: bytes) -> int:
        """Calculate ICMP checksum (RFC 1071)"""
        if len(data) % 2:
            data += b'\x00'

        s = 0
        for i in range(0, len(data), 2):
            w = (data[i] << 8) + data[i + 1]
            s += w

        s = (s >> 16) + (s & 0xFFFF)
        s += s >> 16
        return ~s & 0xFFFF

    def _build_packet(self) -> bytes:
        """Build ICMP Echo Request packet"""
        self.sequence = (self.sequence + 1) & 0xFFFF
        echo_request = self._types[0]

        header = struct.pack('!BBHHH', echo_request, 0, 0,
                             self.identifier, self.sequence)

        # The kernel fills in the ICMPv6 checksum
        if self.version == 6:
            return header + PAYLOAD

        cs = self._checksum(header + PAYLOAD)
        header = struct.pack('!BBHHH', echo_request, 0, cs,
                             self.identifier, self.sequence)
        return header + PAYLOAD

    def _set_ttl(self, ttl: int):
        if self.version == 6:
            self._sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_UNICAST_HOPS, ttl)
        else:
            self._sock.setsockopt(socket.IPPROTO_IP, socket.IP_TTL, ttl)

    def probe(self, target_ip: str, ttl: int) -> ProbeResult:
        """Send ICMP Echo Request with given TTL"""
        self._set_ttl(ttl)
        packet = self._build_packet()
        current_seq = self.sequence

        send_time = time.perf_counter()
        try:
            self._sock.sendto(packet, (target_ip, 0))
        except OSError as e:
            elapsed_ms = (time.perf_counter() - send_time) * 1000
            logger.debug("Send to %s (ttl %d) failed: %s", target_ip, ttl, e)
            return ProbeResult(ProbeStatus.OTHER_FAILURE, elapsed_ms=elapsed_ms)

        deadline = send_time + self.timeout

        while True:
            remaining = deadline - time.perf_counter()
            if remaining <= 0:
                return ProbeResult(ProbeStatus.TIMED_OUT)

            self._sock.settimeout(remaining)

            try:
                data, addr = self._sock.recvfrom(1024)
            except socket.timeout:
                return ProbeResult(ProbeStatus.TIMED_OUT)
            except OSError as e:
                elapsed_ms = (time.perf_counter() - send_time) * 1000
                logger.debug("Receive for ttl %d failed: %s", ttl, e)
                return ProbeResult(ProbeStatus.OTHER_FAILURE, elapsed_ms=elapsed_ms)
            recv_time = time.perf_counter()

            status = self._parse_response(data, addr[0], target_ip, current_seq)
            if status is not None:
                return ProbeResult(
                    status=status,
                    address=addr[0],
                    elapsed_ms=(recv_time - send_time) * 1000
                )

    def _parse_response(self, data: bytes, responder_ip: str, target_ip: str,
                        expected_seq: int) -> Optional[ProbeStatus]:
        """
        Classify a received packet.

        Returns None for packets that do not answer the probe with
        sequence number expected_seq.
        """
        if self.version == 4:
            if len(data) < 20:
                return None
            ip_header_len = (data[0] & 0x0F) * 4
            icmp_data = data[ip_header_len:]
        else:
            icmp_data = data

        if len(icmp_data) < 8:
            logger.debug("Skipping short packet from %s", responder_ip)
            return None

        _, echo_reply, time_exceeded, unreachable = self._types
        icmp_type = icmp_data[0]

        if icmp_type == echo_reply:
            ident, seq = struct.unpack('!HH', icmp_data[4:8])
            if ident != self.identifier or seq != expected_seq:
                return None
            if same_address(responder_ip, target_ip):
                return ProbeStatus.SUCCESS
            return ProbeStatus.OTHER_FAILURE

        if icmp_type in (time_exceeded, unreachable):
            if not self._is_our_packet(icmp_data[8:], expected_seq):
                return None
            if icmp_type == time_exceeded:
                return ProbeStatus.TIME_EXCEEDED
            return ProbeStatus.OTHER_FAILURE

        return None

    def _is_our_packet(self, quoted: bytes, expected_seq: int) -> bool:
        """Check if the packet quoted in an ICMP error is our echo request"""
        if self.version == 4:
            if not quoted:
                return False
            inner_start = (quoted[0] & 0x0F) * 4
        else:
            inner_start = self.IPV6_HEADER_LEN

        inner_icmp = quoted[inner_start:inner_start + 8]
        if len(inner_icmp) < 8:
            return False

        inner_type = inner_icmp[0]
        inner_ident, inner_seq = struct.unpack('!HH', inner_icmp[4:8])

        return (inner_type == self._types[0] and
                inner_ident == self.identifier and
                inner_seq == expected_seq)

    def close(self):
        """Close the raw socket"""
        if self._sock is not None:
            self._sock.close()
            self._sock = None
            logger.debug("Closed raw ICMP socket")
