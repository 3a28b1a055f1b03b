import json

import pytest

import netcheck
from classifier import classify
from conftest import make_record
from errors import NoPrimaryInterface


@pytest.fixture
def fake_info(monkeypatch):
    calls = []

    def get_network_info(**kwargs):
        calls.append(kwargs)
        records = [
            make_record("eth0", "192.168.1.20"),
            make_record("eth0", "fe80::1", family="IPv6"),
            make_record("tun0", "10.8.0.6"),
        ]
        summary = classify(records, kwargs["platform"], fetch_external=False)
        if kwargs["fetch_external"]:
            summary.external_ip = "203.0.113.9"
        return summary

    monkeypatch.setattr(netcheck, "get_network_info", get_network_info)
    return calls


def test_json_output(fake_info, capsys):
    assert netcheck.main(["--json", "--platform", "linux", "--no-vendor"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["primary_interface"]["network_type"] == "eth0"
    assert data["external_ip"] == "203.0.113.9"
    assert data["stats"]["has_vpn"] is True
    assert data["stats"]["ipv4_count"] == 2
    assert list(data["all_interfaces"]) == ["eth0", "tun0"]
    assert fake_info[0]["vendor_lookup"] is False
    assert fake_info[0]["ipv6_services"] is None


def test_flat_output_without_external_ip(fake_info, capsys):
    assert netcheck.main(["--flat", "--no-external-ip", "--platform", "linux", "--no-vendor"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data == {
        "network_type": "eth0",
        "local_ip": "192.168.1.20",
        "ip_version": "IPv4",
        "mac_address": "aa:bb:cc:dd:ee:ff",
        "subnet_mask": "255.255.255.0",
    }
    assert fake_info[0]["fetch_external"] is False


def test_options_are_passed_through(fake_info, capsys):
    netcheck.main([
        "--json", "--platform", "linux", "--ipv6", "--timeout", "2.5",
        "--service", "https://icanhazip.com", "--service", "https://ifconfig.me/ip",
    ])
    capsys.readouterr()

    call = fake_info[0]
    assert call["services"] == ["https://icanhazip.com", "https://ifconfig.me/ip"]
    assert call["timeout"] == 2.5
    assert call["ipv6_services"] == ["https://api6.ipify.org"]
    assert call["vendor_lookup"] is True


def test_table_output(fake_info, capsys):
    assert netcheck.main(["--platform", "linux", "--no-vendor"]) == 0

    out = capsys.readouterr().out
    assert "Primary Interface" in out
    assert "192.168.1.20" in out
    assert "tun0" in out
    assert "203.0.113.9" in out


def test_json_and_flat_are_exclusive(fake_info):
    with pytest.raises(SystemExit):
        netcheck.main(["--json", "--flat"])


def test_no_primary_interface_exit_status(monkeypatch, capsys):
    def get_network_info(**kwargs):
        raise NoPrimaryInterface(kwargs["platform"], "en0")

    monkeypatch.setattr(netcheck, "get_network_info", get_network_info)

    assert netcheck.main(["--platform", "darwin", "--no-vendor"]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "No valid network interface found" in captured.err


def test_error_message_keeps_brackets(monkeypatch, capsys):
    def get_network_info(**kwargs):
        raise NoPrimaryInterface(kwargs["platform"], "eth0")

    monkeypatch.setattr(netcheck, "get_network_info", get_network_info)

    assert netcheck.main(["--platform", "[x]", "--no-vendor"]) == 1
    assert "'[x]'" in capsys.readouterr().err
