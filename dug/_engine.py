'''
**dug._engine**
---------------

Runs every registered strategy for a hostname at the same time and joins
their results in registration order. `resolve_batch` does the same across
hostnames.

Failures inside a strategy are data (`Failure` results). The only error
that escapes is `ResolutionContractError`, which means the orchestration
itself is broken.
'''
import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Protocol, Self

from dug._models import Resolution
from dug._resolvers import (
    BackendFactory,
    ConfReader,
    DnsBackend,
    ExhaustiveResolverSet,
    LocalResolver,
    PublicResolverSet,
    os_addresses,
)
from dug._settings import DugSettings
from dug._sysconf import read_system_conf
from dug._tools import TOOLS, CommandRunner, ExternalToolResolver, run_command

logger = logging.getLogger(__name__)


class ResolutionContractError(RuntimeError):
    '''
    Raised when a hostname ends up with no resolutions, with resolutions
    for another name, or with duplicate source labels.

    Parent: RuntimeError
    '''


class Strategy(Protocol):
    label: str

    async def resolve(self, name: str) -> list[Resolution]: ...


def _check_resolutions(name: str, resolutions: Sequence[Resolution]) -> None:
    if not resolutions:
        raise ResolutionContractError(f'No resolutions were produced for {name!r}')

    seen: set[str] = set()
    for res in resolutions:
        if res.name != name:
            raise ResolutionContractError(
                f'Resolution for {res.name!r} returned while resolving {name!r}'
            )
        if res.source in seen:
            raise ResolutionContractError(
                f'Duplicate source label {res.source!r} while resolving {name!r}'
            )
        seen.add(res.source)


class HostResolver:
    '''
    Resolves a hostname with every registered strategy concurrently.

    Results are concatenated in registration order, never in completion
    order. The default registration (`from_settings`) is: public DNS,
    local, per-nameserver resolv.conf, then each external tool.
    '''

    def __init__(self, strategies: Iterable[Strategy]) -> None:
        self._strategies: tuple[Strategy, ...] = tuple(strategies)

    @classmethod
    def from_settings(
        cls,
        settings: DugSettings | None = None,
        *,
        backend_factory: BackendFactory = DnsBackend,
        conf_reader: ConfReader = read_system_conf,
        runner: CommandRunner = run_command,
        os_lookup: Callable[[str], list[str]] = os_addresses,
    ) -> Self:
        '''
        Register the standard strategies.

        Parameters
        ----------
        settings : DugSettings | None, optional
        backend_factory : BackendFactory, optional
            Builds the DNS lookup backend for a config, by default `DnsBackend`
        conf_reader : ConfReader, optional
            Reads the system resolver configuration, by default `read_system_conf`
        runner : CommandRunner, optional
            Runs external tools, by default `run_command`
        os_lookup : Callable[[str], list[str]], optional
            The OS address lookup, by default `os_addresses`

        Returns
        -------
        HostResolver
        '''
        settings = settings or DugSettings()
        strategies: list[Strategy] = [
            PublicResolverSet(
                timeout=settings.lookup_timeout,
                backend_factory=backend_factory,
            ),
            LocalResolver(
                settings.resolv_conf,
                timeout=settings.lookup_timeout,
                backend_factory=backend_factory,
                conf_reader=conf_reader,
                os_lookup=os_lookup,
            ),
            ExhaustiveResolverSet(
                settings.resolv_conf,
                timeout=settings.lookup_timeout,
                backend_factory=backend_factory,
                conf_reader=conf_reader,
            ),
        ]
        if settings.use_tools:
            strategies.extend(
                ExternalToolResolver(
                    TOOLS[tool],
                    timeout=settings.process_timeout,
                    runner=runner,
                )
                for tool in settings.tools
            )
        return cls(strategies)

    @property
    def strategies(self) -> tuple[Strategy, ...]:
        return self._strategies

    async def _run(self, strategy: Strategy, name: str) -> list[Resolution]:
        try:
            return await strategy.resolve(name)
        except Exception as exc:
            logger.warning(f'Strategy {strategy.label!r} raised while resolving {name}: {exc!r}')
            return [Resolution.with_error(name, strategy.label, exc)]

    async def resolve(self, name: str) -> list[Resolution]:
        '''
        Parameters
        ----------
        name : str

        Returns
        -------
        list[Resolution]
            Never empty.

        Raises
        ------
        ResolutionContractError
        '''
        logger.info(f'Resolving {name} with {len(self._strategies)} strategies')
        groups = await asyncio.gather(*(
            self._run(strategy, name) for strategy in self._strategies
        ))
        resolutions = [res for group in groups for res in group]
        _check_resolutions(name, resolutions)
        return resolutions


async def resolve_batch(
    names: Sequence[str],
    resolver: HostResolver | None = None,
) -> list[list[Resolution]]:
    '''
    Resolve every hostname concurrently. The outer list follows the order
    of `names`.

    Parameters
    ----------
    names : Sequence[str]
    resolver : HostResolver | None, optional
        by default `HostResolver.from_settings()`

    Returns
    -------
    list[list[Resolution]]

    Raises
    ------
    ResolutionContractError
    '''
    host_resolver = resolver or HostResolver.from_settings()
    return list(await asyncio.gather(*(
        host_resolver.resolve(name) for name in names
    )))
