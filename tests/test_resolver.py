import socket

import pytest

from fasttrace import resolver
from fasttrace.resolver import ResolutionError, resolve_target


@pytest.fixture
def no_lookups(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("getaddrinfo should not be called")
    monkeypatch.setattr(resolver.socket, "getaddrinfo", fail)


@pytest.fixture
def lookup(monkeypatch):
    """Install a fake getaddrinfo returning the given entries"""
    calls = []

    def install(entries=None, error=None):
        def fake(host, port, *args, **kwargs):
            calls.append(host)
            if error is not None:
                raise error
            return entries
        monkeypatch.setattr(resolver.socket, "getaddrinfo", fake)
        return calls

    return install


def test_literal_ipv4_needs_no_lookup(no_lookups):
    target = resolve_target("203.0.113.5")
    assert target.address == "203.0.113.5"
    assert target.hostname is None


def test_literal_ipv6_is_normalized(no_lookups):
    target = resolve_target("2001:DB8:0::1")
    assert target.address == "2001:db8::1"
    assert target.hostname is None


def test_name_uses_first_address_and_canonical_name(lookup):
    calls = lookup([
        (socket.AF_INET, socket.SOCK_STREAM, 6, "edge.example.net", ("192.0.2.7", 0)),
        (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("192.0.2.8", 0)),
    ])

    target = resolve_target("example.com")

    assert calls == ["example.com"]
    assert target.address == "192.0.2.7"
    assert target.hostname == "edge.example.net"


def test_missing_canonical_name_falls_back_to_argument(lookup):
    lookup([(socket.AF_INET6, socket.SOCK_STREAM, 6, "", ("2001:db8::7", 0, 0, 0))])

    target = resolve_target("example.com")

    assert target.address == "2001:db8::7"
    assert target.hostname == "example.com"


def test_hostname_omitted_when_disabled(lookup):
    lookup([(socket.AF_INET, socket.SOCK_STREAM, 6, "edge.example.net", ("192.0.2.7", 0))])

    target = resolve_target("example.com", resolve_hostname=False)

    assert target.address == "192.0.2.7"
    assert target.hostname is None


def test_failed_lookup_raises_resolution_error(lookup):
    lookup(error=socket.gaierror(socket.EAI_NONAME, "Name or service not known"))

    with pytest.raises(ResolutionError) as excinfo:
        resolve_target("nope.invalid")

    assert str(excinfo.value) == "Unable to resolve hostname nope.invalid."
    assert excinfo.value.address == "nope.invalid"


def test_empty_lookup_result_raises_resolution_error(lookup):
    lookup([])

    with pytest.raises(ResolutionError):
        resolve_target("empty.example")
