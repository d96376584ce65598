"""Tests for network helpers."""
import pytest

from tailmesh.utils.network import is_tailscale_ip, is_valid_hostname, is_valid_ip


@pytest.mark.parametrize("ip", ["100.64.0.1", "192.168.1.1", "fd7a:115c:a1e0::1"])
def test_valid_ip(ip):
    assert is_valid_ip(ip)


@pytest.mark.parametrize("ip", ["", "nas", "300.1.1.1", "#"])
def test_invalid_ip(ip):
    assert not is_valid_ip(ip)


@pytest.mark.parametrize(
    "ip,expected",
    [
        ("100.64.0.1", True),
        ("100.127.255.254", True),
        ("100.128.0.1", False),
        ("192.168.1.1", False),
        ("fd7a:115c:a1e0:ab12::1", True),
        ("fe80::1", False),
        ("nas", False),
    ],
)
def test_is_tailscale_ip(ip, expected):
    assert is_tailscale_ip(ip) is expected


def test_hostnames():
    assert is_valid_hostname("nas.tail1234.ts.net")
    assert not is_valid_hostname("bad_host")
    assert not is_valid_hostname("")
