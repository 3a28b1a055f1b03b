"""
Interface classification: picks the primary interface, flags VPN-like
interfaces, groups addresses per interface and computes summary stats.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

from errors import NoPrimaryInterface
from external_ip import DEFAULT_TIMEOUT, lookup_external_addresses

logger = logging.getLogger(__name__)

IPV4 = "IPv4"
IPV6 = "IPv6"

# Substrings (case-insensitive) that mark an interface name as VPN-like
VPN_IDENTIFIERS = {
    "win32": ["VPN", "TAP", "TUN"],
    "darwin": ["utun", "ppp"],
    "linux": ["tun", "vpn", "wg"],
}

DEFAULT_PRIMARY_NAMES = {
    "darwin": "en0",
}
FALLBACK_PRIMARY_NAME = "eth0"

WINDOWS_PLATFORMS = ("win32",)


@dataclass(frozen=True)
class RawInterfaceRecord:
    family: str
    name: str
    address: str
    netmask: str
    scopeid: Optional[int]
    cidr: str
    mac: str

    def to_dict(self):
        return {
            "family": self.family,
            "name": self.name,
            "address": self.address,
            "netmask": self.netmask,
            "scopeid": self.scopeid,
            "cidr": self.cidr,
            "mac": self.mac,
        }


@dataclass
class InterfaceGroup:
    ipv4: Optional[RawInterfaceRecord] = None
    ipv6: List[RawInterfaceRecord] = field(default_factory=list)

    def to_dict(self):
        group = {}
        if self.ipv4 is not None:
            group["ipv4"] = self.ipv4.to_dict()
        if self.ipv6:
            group["ipv6"] = [record.to_dict() for record in self.ipv6]
        return group


@dataclass
class NetworkStats:
    ipv4_count: int
    ipv6_count: int
    interface_types: Set[str]
    has_vpn: bool

    def to_dict(self):
        return {
            "ipv4_count": self.ipv4_count,
            "ipv6_count": self.ipv6_count,
            "interface_types": sorted(self.interface_types),
            "has_vpn": self.has_vpn,
        }


@dataclass
class PrimaryInterface:
    network_type: str
    local_ip: str
    ip_version: str
    mac_address: str
    subnet_mask: str
    cidr: str
    vendor: Optional[str] = None

    @classmethod
    def from_record(cls, record):
        return cls(
            network_type=record.name,
            local_ip=record.address,
            ip_version=record.family,
            mac_address=record.mac,
            subnet_mask=record.netmask,
            cidr=record.cidr,
        )

    def to_dict(self):
        primary = {
            "network_type": self.network_type,
            "local_ip": self.local_ip,
            "ip_version": self.ip_version,
            "mac_address": self.mac_address,
            "subnet_mask": self.subnet_mask,
            "cidr": self.cidr,
        }
        if self.vendor is not None:
            primary["vendor"] = self.vendor
        return primary


@dataclass
class NetworkSummary:
    primary_interface: PrimaryInterface
    all_interfaces: Dict[str, InterfaceGroup]
    stats: NetworkStats
    last_updated: str
    external_ip: Optional[str] = None
    external_ipv6: Optional[str] = None

    def to_dict(self):
        """JSON-ready form. External addresses only appear when known."""
        summary = {
            "primary_interface": self.primary_interface.to_dict(),
            "all_interfaces": {name: group.to_dict() for name, group in self.all_interfaces.items()},
            "stats": self.stats.to_dict(),
            "last_updated": self.last_updated,
        }
        if self.external_ip is not None:
            summary["external_ip"] = self.external_ip
        if self.external_ipv6 is not None:
            summary["external_ipv6"] = self.external_ipv6
        return summary

    def flat(self):
        """Single-level record: primary interface fields plus the external IP."""
        primary = self.primary_interface
        record = {
            "network_type": primary.network_type,
            "local_ip": primary.local_ip,
            "ip_version": primary.ip_version,
            "mac_address": primary.mac_address,
            "subnet_mask": primary.subnet_mask,
        }
        if self.external_ip is not None:
            record["external_ip"] = self.external_ip
        return record


def is_vpn_interface(name, platform):
    """True if the interface name contains one of the platform's VPN markers."""
    identifiers = VPN_IDENTIFIERS.get(platform, [])
    lowered = name.lower()
    return any(identifier.lower() in lowered for identifier in identifiers)


def get_primary_interface_name(platform):
    """Default primary interface name for non-Windows platforms."""
    return DEFAULT_PRIMARY_NAMES.get(platform, FALLBACK_PRIMARY_NAME)


def is_loopback(address):
    return address.startswith("127.")


def select_primary_interface(records, platform):
    """
    Returns the first non-loopback IPv4 record that qualifies as primary.
    On Windows any non-VPN interface qualifies; elsewhere only the
    platform's default interface name does.
    Raises NoPrimaryInterface when nothing qualifies.
    """
    windows = platform in WINDOWS_PLATFORMS
    expected_name = None if windows else get_primary_interface_name(platform)

    for record in records:
        if record.family != IPV4 or is_loopback(record.address):
            continue
        if windows:
            if not is_vpn_interface(record.name, platform):
                return record
        elif record.name == expected_name:
            return record

    raise NoPrimaryInterface(platform, expected_name)


def group_interfaces(records):
    """
    Groups records by interface name. The first IPv4 record of a name is
    kept, later ones are ignored. IPv6 records are appended in order.
    """
    groups = {}
    for record in records:
        group = groups.setdefault(record.name, InterfaceGroup())
        if record.family == IPV4:
            if group.ipv4 is None:
                group.ipv4 = record
        else:
            group.ipv6.append(record)
    return groups


def calculate_network_stats(records, platform):
    return NetworkStats(
        ipv4_count=sum(1 for record in records if record.family == IPV4),
        ipv6_count=sum(1 for record in records if record.family == IPV6),
        interface_types={record.name for record in records},
        has_vpn=any(is_vpn_interface(record.name, platform) for record in records),
    )


def iso_timestamp(now=None):
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    now = now or datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def classify(records, platform, fetch_external=True, services=None,
             timeout=DEFAULT_TIMEOUT, ipv6_services=None, session=None):
    """
    Builds a NetworkSummary from the OS interface records.

    The external IP lookup never fails the call: when every service fails
    a warning is logged and the field is left out of the summary.
    NoPrimaryInterface propagates to the caller.
    """
    records = list(records)
    primary = select_primary_interface(records, platform)
    logger.debug(f"Primary interface: {primary.name} ({primary.address})")

    summary = NetworkSummary(
        primary_interface=PrimaryInterface.from_record(primary),
        all_interfaces=group_interfaces(records),
        stats=calculate_network_stats(records, platform),
        last_updated=iso_timestamp(),
    )

    if not fetch_external:
        return summary

    ipv4_result, ipv6_result = lookup_external_addresses(
        services=services,
        ipv6_services=ipv6_services,
        timeout=timeout,
        session=session,
    )

    if ipv4_result.ip:
        summary.external_ip = ipv4_result.ip
    else:
        logger.warning(f"External IP fetch failed: {ipv4_result.describe_errors()}")

    if ipv6_result is not None:
        if ipv6_result.ip:
            summary.external_ipv6 = ipv6_result.ip
        else:
            logger.warning(f"External IPv6 fetch failed: {ipv6_result.describe_errors()}")

    return summary
