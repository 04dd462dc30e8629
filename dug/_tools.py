'''
**dug._tools**
--------------

Resolution through external DNS utilities (dig, drill). Each tool is run
twice per hostname, once for A and once for AAAA, and every run becomes
its own `Resolution` labelled like `A (dig)` / `AAAA (dig)`.

The process facility is injected (`CommandRunner`) so tests can swap in
a fake instead of spawning real processes.
'''
import asyncio
import contextlib
import dataclasses as dc
import logging
from collections.abc import Awaitable, Callable, Sequence

from dug._guard import guard
from dug._models import Resolution

logger = logging.getLogger(__name__)

PROCESS_TIMEOUT: float = 10.0
RECORD_TYPES: tuple[str, ...] = ('A', 'AAAA')


class ProcessError(RuntimeError):
    '''
    Raised when an external tool cannot be spawned, is killed by a signal,
    exits non-zero or writes output that is not valid text.

    Parent: RuntimeError
    '''


@dc.dataclass(frozen=True, slots=True)
class CommandOutput:
    exit_status: int | None
    stdout: bytes
    signaled: bool = False


CommandRunner = Callable[[str, Sequence[str]], Awaitable[CommandOutput]]


async def run_command(command: str, args: Sequence[str]) -> CommandOutput:
    '''
    Spawn `command` with `args` and capture its standard output.
    If the caller is cancelled (e.g. on timeout) the process is killed.

    Parameters
    ----------
    command : str
    args : Sequence[str]

    Returns
    -------
    CommandOutput

    Raises
    ------
    OSError
        If the process cannot be spawned (missing binary, permissions).
    '''
    proc = await asyncio.create_subprocess_exec(
        command,
        *args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.DEVNULL,
    )
    try:
        stdout, _ = await proc.communicate()
    except asyncio.CancelledError:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        await proc.wait()
        raise

    code = proc.returncode
    return CommandOutput(
        exit_status=code,
        stdout=stdout or b'',
        signaled=code is not None and code < 0,
    )


async def command_lines(
    command: str,
    args: Sequence[str],
    runner: CommandRunner = run_command,
) -> list[str]:
    '''
    Run a command and return the non-empty lines of its output.

    Parameters
    ----------
    command : str
    args : Sequence[str]
    runner : CommandRunner, optional
        by default `run_command`

    Returns
    -------
    list[str]

    Raises
    ------
    ProcessError
    '''
    try:
        output = await runner(command, args)
    except OSError as exc:
        raise ProcessError(f'failed to spawn {command}: {exc}') from exc

    if output.signaled or output.exit_status is None:
        raise ProcessError('process terminated by signal')
    if output.exit_status != 0:
        raise ProcessError(f'process failed with exit code {output.exit_status}')

    try:
        text = output.stdout.decode('utf-8')
    except UnicodeDecodeError as exc:
        raise ProcessError('output not valid text') from exc

    return [line.strip() for line in text.splitlines() if line.strip()]


@dc.dataclass(frozen=True, slots=True)
class ToolSpec:
    '''
    How to invoke a tool. `args` is a template, `{name}` and `{rtype}`
    are replaced with the hostname and the record type.
    '''
    command: str
    args: tuple[str, ...]

    def argv(self, name: str, rtype: str) -> list[str]:
        return [arg.format(name=name, rtype=rtype) for arg in self.args]

    def label(self, rtype: str) -> str:
        return f'{rtype} ({self.command})'


DIG = ToolSpec(command='dig', args=('+short', '{name}', '{rtype}'))
DRILL = ToolSpec(command='drill', args=('-Q', '{name}', '{rtype}'))

TOOLS: dict[str, ToolSpec] = {
    DIG.command: DIG,
    DRILL.command: DRILL,
}


class ExternalToolResolver:

    def __init__(
        self,
        tool: ToolSpec,
        *,
        timeout: float = PROCESS_TIMEOUT,
        runner: CommandRunner = run_command,
    ) -> None:
        self._tool = tool
        self._timeout = timeout
        self._runner = runner

    @property
    def label(self) -> str:
        return self._tool.command

    async def _query(self, name: str, rtype: str) -> Resolution:
        label = self._tool.label(rtype)
        outcome = await guard(
            self._timeout,
            command_lines(self._tool.command, self._tool.argv(name, rtype), self._runner),
        )
        if not outcome.ok:
            logger.debug(f'{label} failed for {name}')
        return Resolution(name=name, source=label, result=outcome.to_result())

    async def resolve(self, name: str) -> list[Resolution]:
        return list(await asyncio.gather(*(
            self._query(name, rtype) for rtype in RECORD_TYPES
        )))
