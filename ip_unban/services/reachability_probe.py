"""Single ICMP echo liveness probe.

Uses unprivileged datagram ICMP sockets (``net.ipv4.ping_group_range`` on
Linux), so no raw-socket capability is needed.
"""

import ipaddress
import logging
import os
import socket
import struct

from ip_unban.models.probe_result import ProbeResult, ProbeStatus
from ip_unban.utils.ip_utils import parse_ip


logger = logging.getLogger(__name__)

ICMP_ECHO_REQUEST = 8
ICMP_ECHO_REPLY = 0
ICMPV6_ECHO_REQUEST = 128
ICMPV6_ECHO_REPLY = 129

ECHO_PAYLOAD = b"1234567890"
ICMP_HEADER = struct.Struct("!BBHHH")


def icmp_checksum(data: bytes) -> int:
    """RFC 1071 internet checksum."""
    if len(data) % 2:
        data += b"\x00"
    total = sum(struct.unpack(f"!{len(data) // 2}H", data))
    total = (total >> 16) + (total & 0xFFFF)
    total += total >> 16
    return ~total & 0xFFFF


def build_echo_request(ipv6: bool, ident: int, seq: int = 1) -> bytes:
    """Build an echo request message.

    The checksum is filled in for ICMPv4; the kernel computes it for ICMPv6.
    """
    msg_type = ICMPV6_ECHO_REQUEST if ipv6 else ICMP_ECHO_REQUEST
    header = ICMP_HEADER.pack(msg_type, 0, 0, ident, seq)
    if ipv6:
        return header + ECHO_PAYLOAD
    checksum = icmp_checksum(header + ECHO_PAYLOAD)
    return ICMP_HEADER.pack(msg_type, 0, checksum, ident, seq) + ECHO_PAYLOAD


def strip_ip_header(packet: bytes) -> bytes:
    """Drop a leading IPv4 header if the platform delivers one.

    Linux datagram ICMP sockets return only the ICMP message; BSD-derived
    systems prepend the IPv4 header. An echo reply starts with type 0, so a
    leading version nibble of 4 is unambiguous.
    """
    if packet and packet[0] >> 4 == 4:
        header_len = (packet[0] & 0x0F) * 4
        return packet[header_len:]
    return packet


class IcmpEchoProbe:
    """Sends one echo request and classifies the single reply."""

    def __init__(self, timeout: float = 1.0):
        """Initialize probe.

        Args:
            timeout: Per-attempt read timeout in seconds.
        """
        self.timeout = timeout

    def probe(self, target: str) -> ProbeResult:
        """Probe a target address once.

        Success requires an echo reply of the right protocol whose sender is
        the target itself. Nothing is retried here.

        Args:
            target: IPv4 or IPv6 address (not a hostname).

        Returns:
            ProbeResult: SUCCESS or the specific failure status.
        """
        addr = parse_ip(target)
        if addr is None:
            return ProbeResult(target, ProbeStatus.SEND_ERROR, f"invalid address {target!r}")

        ipv6 = isinstance(addr, ipaddress.IPv6Address)
        family = socket.AF_INET6 if ipv6 else socket.AF_INET
        proto = socket.IPPROTO_ICMPV6 if ipv6 else socket.IPPROTO_ICMP
        reply_type = ICMPV6_ECHO_REPLY if ipv6 else ICMP_ECHO_REPLY

        try:
            sock = socket.socket(family, socket.SOCK_DGRAM, proto)
        except OSError as e:
            return ProbeResult(target, ProbeStatus.SEND_ERROR, f"socket: {e}")

        with sock:
            sock.settimeout(self.timeout)
            request = build_echo_request(ipv6, os.getpid() & 0xFFFF)

            try:
                sock.sendto(request, (str(addr), 0))
            except OSError as e:
                return ProbeResult(target, ProbeStatus.SEND_ERROR, f"sendto: {e}")

            try:
                packet, peer = sock.recvfrom(1500)
            except socket.timeout:
                return ProbeResult(
                    target, ProbeStatus.TIMEOUT, f"no reply within {self.timeout:g}s"
                )
            except OSError as e:
                return ProbeResult(target, ProbeStatus.SEND_ERROR, f"recvfrom: {e}")

        return self._classify(target, addr, reply_type, packet, peer[0])

    @staticmethod
    def _classify(target, addr, reply_type, packet, responder) -> ProbeResult:
        message = packet if reply_type == ICMPV6_ECHO_REPLY else strip_ip_header(packet)
        if len(message) < ICMP_HEADER.size:
            return ProbeResult(
                target, ProbeStatus.MALFORMED, f"{len(message)}-byte reply", responder
            )

        msg_type = message[0]
        if msg_type != reply_type:
            return ProbeResult(
                target,
                ProbeStatus.WRONG_TYPE,
                f"icmp request [{target}]: got type {msg_type}, not echo reply",
                responder,
            )

        # Scope suffixes ("fe80::1%eth0") are not part of the address
        responder_addr = parse_ip(str(responder).split("%")[0])
        if responder_addr is None or str(responder_addr) != str(addr):
            return ProbeResult(
                target,
                ProbeStatus.ADDRESS_MISMATCH,
                f"icmp request [{target}]: reply came from {responder}",
                responder,
            )

        return ProbeResult(target, ProbeStatus.SUCCESS, responder=responder)
