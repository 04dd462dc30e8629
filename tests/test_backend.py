import time
from pathlib import Path

import dns.name
import pytest

from dug import (
    DnsBackend,
    Nameserver,
    ResolverConfig,
    ResolverOptions,
    read_system_conf,
    resolve_with_configs,
)


@pytest.fixture
def resolv_conf(tmp_path: Path) -> str:
    path = tmp_path / "resolv.conf"
    path.write_text(
        "domain corp.example\n"
        "search corp.example example\n"
        "nameserver 10.7.0.1\n"
        "nameserver 10.7.0.2\n"
        "options rotate ndots:2\n",
        encoding="utf-8",
    )
    return str(path)


def test_backend_from_system_conf(resolv_conf):
    system = read_system_conf(resolv_conf)
    backend = DnsBackend(system.config, system.options)
    resolver = backend.resolver

    assert [(ns.address, ns.port) for ns in resolver.nameservers] == [
        ("10.7.0.1", 53),
        ("10.7.0.2", 53),
    ]
    assert resolver.search == [dns.name.from_text("corp.example"), dns.name.from_text("example")]
    assert resolver.ndots == 2
    assert resolver.rotate is True
    assert not backend.tcp


def test_backend_from_public_preset():
    backend = DnsBackend(ResolverConfig.cloudflare(), ResolverOptions(lifetime=3.0))
    resolver = backend.resolver

    assert [ns.address for ns in resolver.nameservers] == [
        "1.1.1.1",
        "1.0.0.1",
        "2606:4700:4700::1111",
        "2606:4700:4700::1001",
    ]
    assert all(ns.port == 53 for ns in resolver.nameservers)
    assert resolver.lifetime == 3.0
    assert resolver.rotate is False


def test_backend_keeps_custom_ports_and_domain():
    config = ResolverConfig(
        nameservers=[Nameserver("127.0.0.1", port=5353)],
        domain="corp.example",
    )
    resolver = DnsBackend(config).resolver

    assert [(ns.address, ns.port) for ns in resolver.nameservers] == [("127.0.0.1", 5353)]
    assert resolver.domain == dns.name.from_text("corp.example")


@pytest.mark.parametrize(
    ("protocols", "options", "expected"),
    [
        (("udp",), ResolverOptions(), False),
        (("tcp",), ResolverOptions(), True),
        (("tcp", "udp"), ResolverOptions(), False),
        (("udp",), ResolverOptions(tcp=True), True),
    ],
)
def test_backend_uses_tcp_when_asked(protocols, options, expected):
    config = ResolverConfig(
        nameservers=[Nameserver(f"10.7.0.{i}", protocol=proto) for i, proto in enumerate(protocols, 1)]
    )
    assert DnsBackend(config, options).tcp is expected


@pytest.mark.asyncio
async def test_unreachable_server_fails_within_deadline():
    configs = {"closed port": ResolverConfig(nameservers=[Nameserver("127.0.0.1", port=9)])}
    options = ResolverOptions(timeout=0.2, lifetime=0.3)

    start = time.monotonic()
    results = await resolve_with_configs("example.test", configs, options, timeout=2.0)
    elapsed = time.monotonic() - start

    assert len(results) == 1
    assert results[0].source == "closed port"
    assert results[0].failed
    assert elapsed < 2.5
