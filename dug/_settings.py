import dataclasses as dc
import math
import os
from collections.abc import Mapping
from typing import Self

from dug._resolvers import LOOKUP_TIMEOUT
from dug._sysconf import DEFAULT_RESOLV_CONF
from dug._tools import PROCESS_TIMEOUT, TOOLS

ENV_LOOKUP_TIMEOUT = 'DUG_LOOKUP_TIMEOUT'
ENV_PROCESS_TIMEOUT = 'DUG_PROCESS_TIMEOUT'
ENV_RESOLV_CONF = 'DUG_RESOLV_CONF'


def _env_float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f'{key} must be a number of seconds, got {raw!r}') from exc


@dc.dataclass(slots=True)
class DugSettings:
    '''
    Runtime settings. Good defaults are provided, so an empty
    `DugSettings()` is a complete configuration.
    '''
    lookup_timeout: float = LOOKUP_TIMEOUT
    process_timeout: float = PROCESS_TIMEOUT
    resolv_conf: str = DEFAULT_RESOLV_CONF
    use_tools: bool = True
    tools: tuple[str, ...] = tuple(TOOLS)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        '''
        Raises
        ------
        ValueError
            If a timeout is not finite and positive, if the process
            timeout is shorter than the lookup timeout, or if a tool is
            unknown or named twice.
        '''
        for field_name in ('lookup_timeout', 'process_timeout'):
            value = getattr(self, field_name)
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f'{field_name} must be finite and positive, got {value!r}')

        if self.process_timeout < self.lookup_timeout:
            raise ValueError(
                'process_timeout must not be shorter than lookup_timeout '
                f'({self.process_timeout} < {self.lookup_timeout})'
            )

        unknown = [tool for tool in self.tools if tool not in TOOLS]
        if unknown:
            raise ValueError(
                f"Unknown tool(s): {', '.join(unknown)}; expected one of {', '.join(TOOLS)}"
            )

        duplicates = sorted({tool for tool in self.tools if self.tools.count(tool) > 1})
        if duplicates:
            raise ValueError(f"Tool(s) listed more than once: {', '.join(duplicates)}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> Self:
        '''
        Build settings from `DUG_*` environment variables, with explicit
        keyword overrides winning over the environment. Overrides that are
        None are ignored.

        Parameters
        ----------
        environ : Mapping[str, str] | None, optional
            by default `os.environ`

        Returns
        -------
        DugSettings
        '''
        env = os.environ if environ is None else environ
        values = {
            'lookup_timeout': _env_float(env, ENV_LOOKUP_TIMEOUT, LOOKUP_TIMEOUT),
            'process_timeout': _env_float(env, ENV_PROCESS_TIMEOUT, PROCESS_TIMEOUT),
            'resolv_conf': env.get(ENV_RESOLV_CONF) or DEFAULT_RESOLV_CONF,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)
