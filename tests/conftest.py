import pytest
import requests

from classifier import RawInterfaceRecord


def make_record(name, address, family="IPv4", netmask="255.255.255.0", mac="aa:bb:cc:dd:ee:ff", scopeid=None):
    cidr = f"{address}/24" if family == "IPv4" else f"{address}/64"
    return RawInterfaceRecord(
        family=family,
        name=name,
        address=address,
        netmask=netmask,
        scopeid=scopeid,
        cidr=cidr,
        mac=mac,
    )


class FakeResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text


class FakeSession:
    """Answers GETs from a url -> FakeResponse (or exception) mapping."""

    def __init__(self, answers):
        self.answers = answers
        self.requested = []
        self.closed = False

    def get(self, url, timeout=None, headers=None):
        self.requested.append(url)
        answer = self.answers.get(url)
        if answer is None:
            raise requests.ConnectionError(f"no route to {url}")
        if isinstance(answer, Exception):
            raise answer
        return answer

    def close(self):
        self.closed = True


@pytest.fixture
def record():
    return make_record


@pytest.fixture
def darwin_records():
    return [
        make_record("lo0", "127.0.0.1", mac=""),
        make_record("lo0", "::1", family="IPv6", netmask="ffff:ffff:ffff:ffff:ffff:ffff:ffff:ffff", mac=""),
        make_record("en0", "fe80::1c2b:3d4e", family="IPv6", scopeid=4),
        make_record("en0", "192.168.1.5"),
        make_record("en0", "2001:db8::5", family="IPv6"),
        make_record("ppp0", "fe80::abcd", family="IPv6", mac="", scopeid=12),
    ]
