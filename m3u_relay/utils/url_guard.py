"""Validation of outbound target URLs, including the private-address blocklist.

The check is purely syntactic: it looks at the hostname exactly as written in the
URL and never resolves DNS names, so a public name that resolves to a private
address is not caught here.
"""

from __future__ import annotations

import ipaddress
import logging
import re
from urllib.parse import SplitResult, urlsplit

from ..errors import BlockedUrlError, InvalidUrlError

ALLOWED_SCHEMES = {"http", "https"}
BLOCKED_HOSTNAMES = {"localhost", "127.0.0.1", "::1"}
BLOCKED_NETWORKS = tuple(
    ipaddress.ip_network(cidr)
    for cidr in (
        "0.0.0.0/8",
        "10.0.0.0/8",
        "127.0.0.0/8",
        "169.254.0.0/16",
        "172.16.0.0/12",
        "192.168.0.0/16",
    )
)
DOTTED_QUAD = re.compile(r"^\d{1,3}(\.\d{1,3}){3}$")


def is_blocked_hostname(hostname: str) -> bool:
    """Returns True for loopback names and IP literals in reserved ranges."""

    host = hostname.lower().strip("[]")
    if host in BLOCKED_HOSTNAMES:
        return True
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        # octets above 255 or with leading zeros are never a routable public host
        return bool(DOTTED_QUAD.match(host))
    if address.version == 6 and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    if address.version == 6:
        return address.is_loopback or address.is_unspecified or address.is_link_local or address.is_private
    return any(address in network for network in BLOCKED_NETWORKS)


def validate_target_url(raw_url: str | None) -> SplitResult:
    """Parses ``raw_url`` and applies the scheme and hostname gates.

    Raises :class:`InvalidUrlError` for unparsable or non-http(s) URLs and
    :class:`BlockedUrlError` for hosts on the blocklist.
    """

    if not raw_url or not raw_url.strip():
        raise InvalidUrlError("A target url is required")
    try:
        parts = urlsplit(raw_url.strip())
        hostname = parts.hostname
        parts.port  # raises ValueError for malformed ports
    except ValueError as exc:
        raise InvalidUrlError("Invalid url", details=str(exc)) from exc

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidUrlError("Invalid url: only http and https are supported")
    if not hostname:
        raise InvalidUrlError("Invalid url: missing host")
    if is_blocked_hostname(hostname):
        logging.warning("Rejected blocked target host %s", hostname)
        raise BlockedUrlError("Blocked url: target host is not publicly routable")
    return parts
