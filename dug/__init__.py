'''
**dug**
-------

Resolve hostnames with every resolution method the host has, in parallel,
and report each method's answer on its own: the OS resolver, a simulated
default resolver, every nameserver from resolv.conf, public DNS providers
and the dig/drill utilities.
See: `dug._engine` and `dug._resolvers` for more details.
'''
from dug._engine import (
    HostResolver,
    ResolutionContractError,
    Strategy,
    resolve_batch,
)
from dug._guard import Outcome, guard
from dug._models import (
    DugResult,
    Failure,
    Nameserver,
    Records,
    Resolution,
    ResolverConfig,
    ResolverOptions,
    dumps,
    loads,
    public_resolvers,
)
from dug._render import render_ascii, render_json, render_table
from dug._resolvers import (
    DnsBackend,
    ExhaustiveResolverSet,
    LocalResolver,
    PublicResolverSet,
    resolve_with_configs,
)
from dug._settings import DugSettings
from dug._sysconf import (
    ConfigReadError,
    SystemConf,
    group_nameservers,
    read_system_conf,
    server_configs,
)
from dug._tools import (
    DIG,
    DRILL,
    CommandOutput,
    ExternalToolResolver,
    ProcessError,
    ToolSpec,
    run_command,
)

__all__ = [
    'HostResolver',
    'ResolutionContractError',
    'Strategy',
    'resolve_batch',
    'Outcome',
    'guard',
    'DugResult',
    'Failure',
    'Nameserver',
    'Records',
    'Resolution',
    'ResolverConfig',
    'ResolverOptions',
    'dumps',
    'loads',
    'public_resolvers',
    'render_ascii',
    'render_json',
    'render_table',
    'DnsBackend',
    'ExhaustiveResolverSet',
    'LocalResolver',
    'PublicResolverSet',
    'resolve_with_configs',
    'DugSettings',
    'ConfigReadError',
    'SystemConf',
    'group_nameservers',
    'read_system_conf',
    'server_configs',
    'DIG',
    'DRILL',
    'CommandOutput',
    'ExternalToolResolver',
    'ProcessError',
    'ToolSpec',
    'run_command',
]
