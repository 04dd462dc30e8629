'''
**dug._sysconf**
----------------

Discovery of the nameservers the host is configured to use. The system
resolver configuration is parsed by dnspython, then split into one
`ResolverConfig` per distinct nameserver address so each server can be
queried on its own.
'''
import dataclasses as dc
import logging
from collections.abc import Iterable

import dns.exception
import dns.name
import dns.resolver

from dug._models import Nameserver, ResolverConfig, ResolverOptions

logger = logging.getLogger(__name__)

DEFAULT_RESOLV_CONF = '/etc/resolv.conf'


class ConfigReadError(RuntimeError):
    '''
    Raised when the system resolver configuration cannot be read.

    Parent: RuntimeError
    '''


@dc.dataclass(slots=True)
class SystemConf:
    config: ResolverConfig
    options: ResolverOptions


def _name_text(name: dns.name.Name | None) -> str | None:
    if name is None or name == dns.name.root:
        return None
    return name.to_text(omit_final_dot=True)


def _nameserver_entry(entry, ports: dict[str, int], default_port: int) -> Nameserver:
    if isinstance(entry, str):
        return Nameserver(address=entry, port=int(ports.get(entry, default_port)))

    address = getattr(entry, 'address', None)
    if address is None:
        raise ConfigReadError(f'Unsupported nameserver entry: {entry}')
    return Nameserver(address=str(address), port=int(getattr(entry, 'port', default_port)))


def read_system_conf(filename: str = DEFAULT_RESOLV_CONF) -> SystemConf:
    '''
    Read the system resolver configuration. This is a fresh read every
    call, nothing is cached.

    Parameters
    ----------
    filename : str, optional
        by default '/etc/resolv.conf'

    Returns
    -------
    SystemConf

    Raises
    ------
    ConfigReadError
        If the file is missing, unreadable, malformed, or lists no nameservers.
    '''
    try:
        resolver = dns.resolver.Resolver(filename=filename, configure=True)
    except (dns.exception.DNSException, OSError, ValueError) as exc:
        raise ConfigReadError(
            f'Cannot read resolver configuration {filename}: {exc}'
        ) from exc

    nameservers = [
        _nameserver_entry(entry, dict(resolver.nameserver_ports), resolver.port)
        for entry in resolver.nameservers
    ]
    config = ResolverConfig(
        nameservers=nameservers,
        domain=_name_text(resolver.domain),
        search=[
            text for text in (_name_text(name) for name in resolver.search)
            if text
        ],
    )
    options = ResolverOptions(
        timeout=float(resolver.timeout),
        lifetime=float(resolver.lifetime),
        ndots=resolver.ndots,
        rotate=bool(resolver.rotate),
        search=getattr(resolver, 'use_search_by_default', None),
    )
    logger.debug(
        f'Read {len(nameservers)} nameserver(s) from {filename}: '
        f'{", ".join(ns.address for ns in nameservers)}'
    )
    return SystemConf(config=config, options=options)


def group_nameservers(nameservers: Iterable[Nameserver]) -> dict[str, list[Nameserver]]:
    '''
    Group nameserver entries by network address, keeping the order in
    which each address first appears.

    Parameters
    ----------
    nameservers : Iterable[Nameserver]

    Returns
    -------
    dict[str, list[Nameserver]]
    '''
    groups: dict[str, list[Nameserver]] = {}
    for ns in nameservers:
        groups.setdefault(ns.address, []).append(ns)
    return groups


def server_label(address: str) -> str:
    return f'resolv.conf server[{address}]'


def server_configs(conf: ResolverConfig) -> dict[str, ResolverConfig]:
    '''
    Build one labelled config per distinct nameserver address, each
    sharing the domain and search list of `conf`.

    Parameters
    ----------
    conf : ResolverConfig

    Returns
    -------
    dict[str, ResolverConfig]
    '''
    return {
        server_label(address): ResolverConfig(
            nameservers=list(group),
            domain=conf.domain,
            search=list(conf.search),
        )
        for address, group in group_nameservers(conf.nameservers).items()
    }
