"""Exceptions raised by netcheck."""


class NetcheckError(Exception):
    """Base class for errors raised by netcheck."""


class NoPrimaryInterface(NetcheckError):
    """No non-loopback IPv4 interface matched the primary selection rule."""

    def __init__(self, platform, expected_name=None):
        self.platform = platform
        self.expected_name = expected_name
        if expected_name:
            message = f"No valid network interface found (expected IPv4 on '{expected_name}', platform '{platform}')"
        else:
            message = f"No valid network interface found (no non-VPN IPv4 interface, platform '{platform}')"
        super().__init__(message)


class ExternalIPUnavailable(NetcheckError):
    """An IP echo service could not be reached or returned an unusable answer."""

    def __init__(self, service, reason):
        self.service = service
        self.reason = reason
        super().__init__(f"{service}: {reason}")
