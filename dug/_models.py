'''
Result and resolver-configuration models shared by every resolution strategy.

A `Resolution` is the outcome of one source for one hostname. Its `result`
is exactly one of `Records` (possibly empty) or `Failure`.
'''
from __future__ import annotations

import dataclasses as dc
import json
from collections.abc import Iterable
from typing import Any, TypedDict


@dc.dataclass(frozen=True, slots=True)
class Records:
    '''
    A real answer from a source, zero or more record strings in the
    order the source returned them.
    '''
    records: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, 'records', tuple(self.records))

    def __str__(self) -> str:
        return ' '.join(self.records)


@dc.dataclass(frozen=True, slots=True)
class Failure:
    '''
    A source that could not produce an answer, with a human readable cause.
    '''
    message: str

    def __str__(self) -> str:
        return self.message


DugResult = Records | Failure


class ResolutionDict(TypedDict, total=False):
    name: str
    source: str
    records: list[str]
    failure: str


@dc.dataclass(frozen=True, slots=True)
class Resolution:
    name: str
    source: str
    result: DugResult

    @classmethod
    def with_records(cls, name: str, source: str, records: Iterable[str]) -> Resolution:
        return cls(name=name, source=source, result=Records(tuple(records)))

    @classmethod
    def with_error(cls, name: str, source: str, error: BaseException | str) -> Resolution:
        return cls(name=name, source=source, result=Failure(describe_error(error)))

    @property
    def failed(self) -> bool:
        return isinstance(self.result, Failure)

    def to_dict(self) -> ResolutionDict:
        '''
        Serialize to the wire shape, carrying exactly one of
        `records` or `failure`.

        Returns
        -------
        ResolutionDict
        '''
        data: ResolutionDict = {'name': self.name, 'source': self.source}
        match self.result:
            case Records(records=records):
                data['records'] = list(records)
            case Failure(message=message):
                data['failure'] = message
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Resolution:
        '''
        Parameters
        ----------
        data : dict[str, Any]

        Returns
        -------
        Resolution

        Raises
        ------
        ValueError
            If both or neither of `records` and `failure` are present.
        '''
        has_records = 'records' in data
        has_failure = 'failure' in data
        if has_records == has_failure:
            raise ValueError(
                f"Expected exactly one of 'records' or 'failure' in {data!r}"
            )

        result: DugResult
        if has_records:
            result = Records(tuple(str(rec) for rec in data['records']))
        else:
            result = Failure(str(data['failure']))

        return cls(name=str(data['name']), source=str(data['source']), result=result)


def describe_error(error: BaseException | str) -> str:
    if isinstance(error, str):
        return error
    return str(error) or type(error).__name__


def dumps(resolutions: Iterable[Resolution], *, indent: int | None = 2) -> str:
    return json.dumps([res.to_dict() for res in resolutions], indent=indent)


def loads(text: str) -> list[Resolution]:
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError('Expected a JSON array of resolutions')
    return [Resolution.from_dict(entry) for entry in data]


@dc.dataclass(frozen=True, slots=True)
class Nameserver:
    address: str
    port: int = 53
    protocol: str = 'udp'


@dc.dataclass(slots=True)
class ResolverConfig:
    '''
    Where to send queries: the nameservers plus the domain and search list
    used to qualify relative names.
    '''
    nameservers: list[Nameserver] = dc.field(default_factory=list)
    domain: str | None = None
    search: list[str] = dc.field(default_factory=list)

    @classmethod
    def from_addresses(cls, *addresses: str) -> ResolverConfig:
        return cls(nameservers=[Nameserver(address=addr) for addr in addresses])

    @classmethod
    def cloudflare(cls) -> ResolverConfig:
        return cls.from_addresses(
            '1.1.1.1',
            '1.0.0.1',
            '2606:4700:4700::1111',
            '2606:4700:4700::1001',
        )

    @classmethod
    def google(cls) -> ResolverConfig:
        return cls.from_addresses(
            '8.8.8.8',
            '8.8.4.4',
            '2001:4860:4860::8888',
            '2001:4860:4860::8844',
        )

    @classmethod
    def quad9(cls) -> ResolverConfig:
        return cls.from_addresses(
            '9.9.9.9',
            '149.112.112.112',
            '2620:fe::fe',
            '2620:fe::9',
        )


@dc.dataclass(slots=True)
class ResolverOptions:
    '''
    Per-lookup options for the DNS library.
    Defaults match dnspython's own resolver defaults.
    '''
    timeout: float = 2.0
    lifetime: float = 5.0
    ndots: int | None = None
    rotate: bool = False
    tcp: bool = False
    search: bool | None = None


def public_resolvers() -> dict[str, ResolverConfig]:
    return {
        'Cloudflare DNS': ResolverConfig.cloudflare(),
        'Google DNS': ResolverConfig.google(),
        'Quad9 DNS': ResolverConfig.quad9(),
    }
