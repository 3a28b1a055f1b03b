#!/usr/bin/env python3

# Host-side helpers: interface enumeration, platform detection,
# MAC vendor lookup and logging setup.

import ipaddress
import logging
import socket
import sys

import psutil
from mac_vendor_lookup import MacLookup
from rich.console import Console
from rich.logging import RichHandler

from classifier import IPV4, IPV6, RawInterfaceRecord, classify
from external_ip import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(message)s'

FAMILIES = {
    socket.AF_INET: IPV4,
    socket.AF_INET6: IPV6,
}


def setup_logger(verbose=False, log_file=None):
    """
    Routes log records to stderr through rich, plus an optional log file.
    stdout stays reserved for the command output.
    """
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger()
    root.setLevel(level)

    if not root.handlers:
        console_handler = RichHandler(console=Console(stderr=True), show_path=False)
        console_handler.setLevel(level)
        root.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root.addHandler(file_handler)

    # urllib3 is chatty at debug level
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return root


def current_platform(raw=None):
    """Maps sys.platform onto win32, darwin or linux. Anything else is passed through."""
    raw = raw or sys.platform
    if raw in ("win32", "cygwin"):
        return "win32"
    if raw == "darwin":
        return "darwin"
    if raw.startswith("linux"):
        return "linux"
    return raw


def format_cidr(address, netmask):
    """
    address/prefixlen, e.g. 192.168.1.5/24.
    Falls back to address/netmask (or the bare address) when the mask can't be parsed.
    """
    if not netmask:
        return address
    try:
        ip = ipaddress.ip_address(address)
        mask = int(ipaddress.ip_address(netmask))
    except ValueError:
        return f"{address}/{netmask}"
    # ip_interface() only takes prefix lengths for IPv6, so count the mask bits
    return f"{ip}/{bin(mask).count('1')}"


def split_scope(address, name):
    """Strips a %scope suffix from an IPv6 address and resolves the scope id."""
    if "%" not in address:
        return address, None
    address, _, scope = address.partition("%")
    if scope.isdigit():
        return address, int(scope)
    try:
        return address, socket.if_nametoindex(scope or name)
    except (OSError, AttributeError):
        return address, None


def get_interface_records():
    """
    Reads the host interfaces through psutil and returns one
    RawInterfaceRecord per IPv4/IPv6 address, in the order psutil reports them.
    """
    records = []
    for name, addrs in psutil.net_if_addrs().items():
        mac = next((a.address for a in addrs if a.family == psutil.AF_LINK and a.address), "")
        for addr in addrs:
            family = FAMILIES.get(addr.family)
            if family is None:
                continue
            netmask = addr.netmask or ""
            address, scopeid = addr.address, None
            if family == IPV6:
                address, scopeid = split_scope(address, name)
            records.append(RawInterfaceRecord(
                family=family,
                name=name,
                address=address,
                netmask=netmask,
                scopeid=scopeid,
                cidr=format_cidr(address, netmask),
                mac=mac,
            ))
    logger.debug(f"Read {len(records)} addresses from {len(set(r.name for r in records))} interfaces")
    return records


def lookup_vendor(mac, mac_lookup=None):
    """Vendor name for a MAC address, or 'N/A' when it can't be resolved."""
    if not mac:
        return "N/A"
    try:
        mac_lookup = mac_lookup or MacLookup()
        return mac_lookup.lookup(mac)
    except Exception as e:  # MacLookup raises KeyError for unknown OUIs and various I/O errors
        logger.debug(f"Vendor lookup failed for {mac}: {e}")
        return "N/A"


def get_network_info(platform=None, fetch_external=True, services=None,
                     timeout=DEFAULT_TIMEOUT, ipv6_services=None, vendor_lookup=False):
    """Snapshot of the local network: reads the OS interfaces and classifies them."""
    platform = current_platform(platform)
    summary = classify(
        get_interface_records(),
        platform,
        fetch_external=fetch_external,
        services=services,
        timeout=timeout,
        ipv6_services=ipv6_services,
    )
    if vendor_lookup:
        summary.primary_interface.vendor = lookup_vendor(summary.primary_interface.mac_address)
    return summary
