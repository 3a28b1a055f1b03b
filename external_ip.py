"""
Looks up the public IP address as seen by third-party echo services.

Failures are never raised to the caller: every lookup returns an
ExternalIPResult holding either the address or the per-service errors.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional

import requests

from errors import ExternalIPUnavailable

logger = logging.getLogger(__name__)

DEFAULT_SERVICES = [
    "https://api.ipify.org",
]
# Opt-in alternatives, e.g. netcheck --service https://ifconfig.me/ip
ALTERNATE_SERVICES = [
    "https://ifconfig.me/ip",
    "https://icanhazip.com",
]
DEFAULT_IPV6_SERVICES = [
    "https://api6.ipify.org",
]
DEFAULT_TIMEOUT = 5  # seconds, per request

HEADERS = {"Accept": "text/plain", "User-Agent": "netcheck"}


@dataclass
class ExternalIPResult:
    ip: Optional[str] = None
    service: Optional[str] = None
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self):
        return self.ip is not None

    def describe_errors(self):
        return "; ".join(self.errors) if self.errors else "no service configured"


def query_service(session, url, timeout=DEFAULT_TIMEOUT):
    """
    GETs one echo service and returns the trimmed body.
    Raises ExternalIPUnavailable on network errors, non-2xx status or an empty body.
    """
    try:
        response = session.get(url, timeout=timeout, headers=HEADERS)
    except requests.RequestException as e:
        raise ExternalIPUnavailable(url, str(e)) from e

    if not 200 <= response.status_code < 300:
        raise ExternalIPUnavailable(url, f"HTTP {response.status_code}")

    ip = response.text.strip()
    if not ip:
        raise ExternalIPUnavailable(url, "empty response body")
    return ip


def fetch_external_ip(services=None, timeout=DEFAULT_TIMEOUT, session=None):
    """
    Queries the services one at a time, in configured order, and returns
    the answer of the first one that succeeds. Later services are only
    contacted when the earlier ones failed.
    """
    services = list(DEFAULT_SERVICES if services is None else services)
    result = ExternalIPResult()
    if not services:
        return result

    own_session = session is None
    if own_session:
        session = requests.Session()

    try:
        for url in services:
            try:
                ip = query_service(session, url, timeout)
            except ExternalIPUnavailable as e:
                logger.debug(f"External IP service failed: {e}")
                result.errors.append(str(e))
                continue
            result.ip = ip
            result.service = url
            logger.debug(f"External IP {ip} from {url}")
            break
    finally:
        if own_session:
            session.close()

    return result


def lookup_external_addresses(services=None, ipv6_services=None, timeout=DEFAULT_TIMEOUT, session=None):
    """
    Returns (ipv4_result, ipv6_result). The IPv6 lookup only runs when
    ipv6_services is given, concurrently with the IPv4 one; otherwise
    ipv6_result is None.
    """
    if not ipv6_services:
        return fetch_external_ip(services, timeout=timeout, session=session), None

    with ThreadPoolExecutor(max_workers=2) as pool:
        ipv4_future = pool.submit(fetch_external_ip, services, timeout, session)
        ipv6_future = pool.submit(fetch_external_ip, ipv6_services, timeout, session)
        return ipv4_future.result(), ipv6_future.result()
