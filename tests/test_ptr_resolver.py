from types import SimpleNamespace

import dns.exception
import dns.name
import dns.resolver
import pytest

from fasttrace.enrichment import PTRResolver


class FakeDNSResolver:
    """Stands in for dns.resolver.Resolver; answers from a class level table"""

    answers = {}
    calls = []

    def __init__(self):
        self.timeout = None
        self.lifetime = None

    def resolve_address(self, ip):
        FakeDNSResolver.calls.append(ip)
        answer = self.answers.get(ip)
        if isinstance(answer, Exception):
            raise answer
        if answer is None:
            raise dns.resolver.NXDOMAIN()
        return [SimpleNamespace(target=dns.name.from_text(answer))]


@pytest.fixture
def fake_dns(monkeypatch):
    FakeDNSResolver.answers = {}
    FakeDNSResolver.calls = []
    monkeypatch.setattr(dns.resolver, "Resolver", FakeDNSResolver)
    return FakeDNSResolver


def test_resolves_ptr_without_trailing_dot(fake_dns):
    fake_dns.answers["10.0.0.2"] = "core1.example.net."

    assert PTRResolver().resolve("10.0.0.2") == "core1.example.net"


def test_lookup_bounded_by_timeout(fake_dns):
    resolver = PTRResolver(timeout=0.5)
    resolver.resolve("10.0.0.2")

    assert resolver._resolver.lifetime == 0.5
    assert resolver._resolver.timeout == 0.5


@pytest.mark.parametrize("error", [
    dns.resolver.NXDOMAIN(),
    dns.resolver.NoAnswer(),
    dns.resolver.NoNameservers(),
    dns.exception.Timeout(),
])
def test_dns_failures_return_none(fake_dns, error):
    fake_dns.answers["198.51.100.1"] = error

    assert PTRResolver().resolve("198.51.100.1") is None


def test_repeated_addresses_are_looked_up_once(fake_dns):
    fake_dns.answers["10.0.0.2"] = "core1.example.net."
    resolver = PTRResolver()

    resolver.resolve("10.0.0.2")
    resolver.resolve("10.0.0.2")
    resolver.resolve("10.0.0.3")
    resolver.resolve("10.0.0.3")

    assert fake_dns.calls == ["10.0.0.2", "10.0.0.3"]


def test_empty_address_is_not_looked_up(fake_dns):
    assert PTRResolver().resolve("") is None
    assert fake_dns.calls == []
