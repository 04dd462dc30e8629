from pathlib import Path

import dns.nameserver
import pytest

from dug import (
    ConfigReadError,
    Nameserver,
    ResolverConfig,
    group_nameservers,
    read_system_conf,
    server_configs,
)
from dug._sysconf import _nameserver_entry


def test_group_nameservers_coalesces_same_address():
    groups = group_nameservers([
        Nameserver("10.7.0.1"),
        Nameserver("10.7.0.2"),
        Nameserver("10.7.0.1", protocol="tcp"),
    ])
    assert list(groups) == ["10.7.0.1", "10.7.0.2"]
    assert len(groups["10.7.0.1"]) == 2


def test_server_configs_one_per_distinct_address():
    conf = ResolverConfig(
        nameservers=[
            Nameserver("10.7.0.1"),
            Nameserver("10.7.0.2"),
            Nameserver("10.7.0.1", port=5353),
            Nameserver("2001:db8::53"),
        ],
        domain="corp.example",
        search=["corp.example", "example"],
    )
    configs = server_configs(conf)

    assert list(configs) == [
        "resolv.conf server[10.7.0.1]",
        "resolv.conf server[10.7.0.2]",
        "resolv.conf server[2001:db8::53]",
    ]
    first = configs["resolv.conf server[10.7.0.1]"]
    assert [ns.port for ns in first.nameservers] == [53, 5353]
    assert first.domain == "corp.example"
    assert first.search == ["corp.example", "example"]


def test_read_system_conf_parses_file(tmp_path: Path):
    resolv = tmp_path / "resolv.conf"
    resolv.write_text(
        "search corp.example\n"
        "nameserver 10.7.0.1\n"
        "nameserver 10.7.0.2\n"
        "options ndots:2\n",
        encoding="utf-8",
    )

    system = read_system_conf(str(resolv))

    assert [ns.address for ns in system.config.nameservers] == ["10.7.0.1", "10.7.0.2"]
    assert all(ns.port == 53 for ns in system.config.nameservers)
    assert system.config.search == ["corp.example"]
    assert system.options.ndots == 2


def test_read_system_conf_missing_file(tmp_path: Path):
    with pytest.raises(ConfigReadError):
        read_system_conf(str(tmp_path / "missing.conf"))


def test_read_system_conf_without_nameservers(tmp_path: Path):
    resolv = tmp_path / "resolv.conf"
    resolv.write_text("search corp.example\n", encoding="utf-8")
    with pytest.raises(ConfigReadError):
        read_system_conf(str(resolv))


def test_read_system_conf_rejects_hostname_nameserver(tmp_path: Path):
    resolv = tmp_path / "resolv.conf"
    resolv.write_text("nameserver dns.corp.example\n", encoding="utf-8")
    with pytest.raises(ConfigReadError):
        read_system_conf(str(resolv))


@pytest.mark.parametrize(
    ("entry", "expected"),
    [
        ("10.7.0.1", Nameserver("10.7.0.1", port=5353)),
        ("10.7.0.2", Nameserver("10.7.0.2", port=53)),
        (dns.nameserver.Do53Nameserver("10.7.0.3", port=5300), Nameserver("10.7.0.3", port=5300)),
    ],
)
def test_nameserver_entries_of_either_shape(entry, expected):
    assert _nameserver_entry(entry, {"10.7.0.1": 5353}, 53) == expected


def test_unsupported_nameserver_entry():
    with pytest.raises(ConfigReadError):
        _nameserver_entry(object(), {}, 53)
