'''
**dug._resolvers**
------------------

Resolution strategies backed by the DNS library and the OS resolver.

- `PublicResolverSet`: one lookup per well-known public provider
- `ExhaustiveResolverSet`: one lookup per nameserver in the system resolver configuration
- `LocalResolver`: the OS resolver plus one lookup through the system configuration

The fan-out helper `resolve_with_configs` is shared by the first two.
'''
import asyncio
import logging
import socket
import threading
from collections.abc import Callable, Mapping
from typing import Any, Protocol

import dns.asyncresolver
import dns.name
import dns.nameserver
import dns.resolver

from dug._guard import guard
from dug._models import (
    Resolution,
    ResolverConfig,
    ResolverOptions,
    describe_error,
    public_resolvers,
)
from dug._sysconf import (
    DEFAULT_RESOLV_CONF,
    ConfigReadError,
    SystemConf,
    read_system_conf,
    server_configs,
)

logger = logging.getLogger(__name__)

LOOKUP_TIMEOUT: float = 7.0


class LookupBackend(Protocol):
    async def lookup_ip(self, name: str) -> list[str]: ...


BackendFactory = Callable[[ResolverConfig, ResolverOptions], LookupBackend]
ConfReader = Callable[[str], SystemConf]


def describe_dns_error(exc: BaseException) -> str:
    '''
    Human readable failure text for a lookup error.

    Parameters
    ----------
    exc : BaseException

    Returns
    -------
    str
    '''
    if isinstance(exc, dns.resolver.NXDOMAIN):
        return f'Domain does not exist: {exc}'
    if isinstance(exc, dns.resolver.NoAnswer):
        return f'No answer: {exc}'
    if isinstance(exc, dns.resolver.NoNameservers):
        return f'No nameservers could answer: {exc}'
    if isinstance(exc, dns.resolver.LifetimeTimeout):
        return f'Resolver gave up: {exc}'
    return describe_error(exc)


class DnsBackend:
    '''
    A dnspython async resolver bound to exactly one `ResolverConfig`.
    Queries go over TCP when the options ask for it or when every
    nameserver in the config is marked `tcp`.
    '''

    def __init__(
        self,
        config: ResolverConfig,
        options: ResolverOptions | None = None,
    ) -> None:
        self._config = config
        self._options = options or ResolverOptions()
        self._resolver = dns.asyncresolver.Resolver(configure=False)
        self._resolver.nameservers = [
            dns.nameserver.Do53Nameserver(ns.address, port=ns.port)
            for ns in config.nameservers
        ]
        if config.domain:
            self._resolver.domain = dns.name.from_text(config.domain)
        self._resolver.search = [dns.name.from_text(entry) for entry in config.search]
        self._resolver.timeout = self._options.timeout
        self._resolver.lifetime = self._options.lifetime
        self._resolver.rotate = self._options.rotate
        if self._options.ndots is not None:
            self._resolver.ndots = self._options.ndots
        self._tcp = self._options.tcp or (
            bool(config.nameservers)
            and all(ns.protocol == 'tcp' for ns in config.nameservers)
        )

    async def lookup_ip(self, name: str) -> list[str]:
        '''
        Look up both A and AAAA records for `name`. A name that exists
        but has no address records gives an empty list.

        Parameters
        ----------
        name : str

        Returns
        -------
        list[str]
        '''
        answers = await self._resolver.resolve_name(
            name,
            family=socket.AF_UNSPEC,
            lifetime=self._options.lifetime,
            search=self._options.search,
            tcp=self._tcp,
            raise_on_no_answer=False,
        )
        return list(answers.addresses())

    @property
    def tcp(self) -> bool:
        return self._tcp

    @property
    def resolver(self) -> dns.asyncresolver.Resolver:
        return self._resolver


async def _lookup_one(
    name: str,
    label: str,
    config: ResolverConfig,
    options: ResolverOptions,
    timeout: float,
    backend_factory: BackendFactory,
) -> Resolution:
    async def lookup() -> list[str]:
        backend = backend_factory(config, options)
        return await backend.lookup_ip(name)

    outcome = await guard(timeout, lookup())
    if not outcome.ok:
        logger.debug(f'{label} could not resolve {name}')
    return Resolution(name=name, source=label, result=outcome.to_result(describe_dns_error))


async def resolve_with_configs(
    name: str,
    configs: Mapping[str, ResolverConfig],
    options: ResolverOptions | None = None,
    *,
    timeout: float = LOOKUP_TIMEOUT,
    backend_factory: BackendFactory = DnsBackend,
) -> list[Resolution]:
    '''
    Look `name` up once per labelled config, all at the same time.
    Every label yields exactly one `Resolution`, in the order of `configs`.

    Parameters
    ----------
    name : str
    configs : Mapping[str, ResolverConfig]
    options : ResolverOptions | None, optional
    timeout : float, optional
        Deadline for each individual lookup, by default `LOOKUP_TIMEOUT`
    backend_factory : BackendFactory, optional
        by default `DnsBackend`

    Returns
    -------
    list[Resolution]
    '''
    opts = options or ResolverOptions()
    return list(await asyncio.gather(*(
        _lookup_one(name, label, config, opts, timeout, backend_factory)
        for label, config in configs.items()
    )))


class PublicResolverSet:
    label = 'Public DNS'

    def __init__(
        self,
        configs: Mapping[str, ResolverConfig] | None = None,
        *,
        options: ResolverOptions | None = None,
        timeout: float = LOOKUP_TIMEOUT,
        backend_factory: BackendFactory = DnsBackend,
    ) -> None:
        self._configs = dict(configs) if configs is not None else public_resolvers()
        self._options = options or ResolverOptions()
        self._timeout = timeout
        self._backend_factory = backend_factory

    async def resolve(self, name: str) -> list[Resolution]:
        logger.debug(f'Resolving {name} with {len(self._configs)} public resolver(s)')
        return await resolve_with_configs(
            name,
            self._configs,
            self._options,
            timeout=self._timeout,
            backend_factory=self._backend_factory,
        )


class ExhaustiveResolverSet:
    '''
    Queries every nameserver from the system resolver configuration on its
    own, so a single misbehaving server shows up instead of being hidden
    behind the others.
    '''
    label = 'DNS resolution with all servers in resolv.conf'

    def __init__(
        self,
        resolv_conf: str = DEFAULT_RESOLV_CONF,
        *,
        timeout: float = LOOKUP_TIMEOUT,
        backend_factory: BackendFactory = DnsBackend,
        conf_reader: ConfReader = read_system_conf,
    ) -> None:
        self._resolv_conf = resolv_conf
        self._timeout = timeout
        self._backend_factory = backend_factory
        self._conf_reader = conf_reader

    async def resolve(self, name: str) -> list[Resolution]:
        try:
            system = self._conf_reader(self._resolv_conf)
        except ConfigReadError as exc:
            logger.warning(f'Skipping per-server lookups for {name}: {exc}')
            return [Resolution.with_error(name, self.label, exc)]

        configs = server_configs(system.config)
        if not configs:
            return [Resolution.with_error(name, self.label, 'No nameservers configured')]

        logger.debug(f'Resolving {name} against {len(configs)} configured nameserver(s)')
        return await resolve_with_configs(
            name,
            configs,
            system.options,
            timeout=self._timeout,
            backend_factory=self._backend_factory,
        )


def os_addresses(name: str) -> list[str]:
    '''
    Resolve `name` with the operating system resolver (getaddrinfo),
    returning each distinct address once, in the order the OS gave them.

    Parameters
    ----------
    name : str

    Returns
    -------
    list[str]
    '''
    infos = socket.getaddrinfo(name, 0, type=socket.SOCK_STREAM)
    return list(dict.fromkeys(str(info[4][0]) for info in infos))


def _settle(future: asyncio.Future, value: Any, error: BaseException | None) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(value)


def run_in_daemon_thread(func: Callable[[str], list[str]], name: str) -> asyncio.Future:
    '''
    Run a blocking lookup on its own daemon thread. Unlike `asyncio.to_thread`,
    an abandoned lookup is not joined when the event loop shuts down, so a
    timed out `getaddrinfo` cannot hold the process open past its deadline.

    Parameters
    ----------
    func : Callable[[str], list[str]]
    name : str

    Returns
    -------
    asyncio.Future
    '''
    loop = asyncio.get_running_loop()
    future: asyncio.Future = loop.create_future()

    def target() -> None:
        value: Any = None
        error: BaseException | None = None
        try:
            value = func(name)
        except Exception as exc:
            error = exc
        if loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(_settle, future, value, error)
        except RuntimeError:
            logger.debug(f'Event loop closed before the OS lookup of {name} finished')

    threading.Thread(target=target, name=f'dug-os-lookup-{name}', daemon=True).start()
    return future


class LocalResolver:
    label = 'Local resolution'
    os_label = 'OS resolution'
    simulated_label = 'simulated nslookup'

    def __init__(
        self,
        resolv_conf: str = DEFAULT_RESOLV_CONF,
        *,
        timeout: float = LOOKUP_TIMEOUT,
        backend_factory: BackendFactory = DnsBackend,
        conf_reader: ConfReader = read_system_conf,
        os_lookup: Callable[[str], list[str]] = os_addresses,
    ) -> None:
        self._resolv_conf = resolv_conf
        self._timeout = timeout
        self._backend_factory = backend_factory
        self._conf_reader = conf_reader
        self._os_lookup = os_lookup

    async def os_resolve(self, name: str) -> Resolution:
        outcome = await guard(self._timeout, run_in_daemon_thread(self._os_lookup, name))
        return Resolution(name=name, source=self.os_label, result=outcome.to_result())

    async def simulated_default_resolve(self, name: str) -> Resolution:
        '''
        One lookup through a resolver built from the system configuration,
        the way nslookup would do it.

        Parameters
        ----------
        name : str

        Returns
        -------
        Resolution
        '''
        try:
            system = self._conf_reader(self._resolv_conf)
        except ConfigReadError as exc:
            logger.warning(f'Cannot simulate the default resolver for {name}: {exc}')
            return Resolution.with_error(name, self.simulated_label, exc)

        return await _lookup_one(
            name,
            self.simulated_label,
            system.config,
            system.options,
            self._timeout,
            self._backend_factory,
        )

    async def resolve(self, name: str) -> list[Resolution]:
        os_result, simulated = await asyncio.gather(
            self.os_resolve(name),
            self.simulated_default_resolve(name),
        )
        return [os_result, simulated]
