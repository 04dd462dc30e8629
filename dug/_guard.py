import asyncio
import dataclasses as dc
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from dug._models import DugResult, Failure, Records, describe_error

logger = logging.getLogger(__name__)

T = TypeVar('T')


def format_deadline(deadline: float) -> str:
    return f'{float(deadline)}s'


@dc.dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    '''
    What happened to a guarded operation: a value, an error, or a timeout.
    Only one of them is ever set.
    '''
    deadline: float
    value: T | None = None
    error: BaseException | None = None
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.timed_out

    def to_result(
        self,
        describe: Callable[[BaseException], str] = describe_error,
    ) -> DugResult:
        '''
        Map the outcome onto a `DugResult`. The value must be an iterable
        of record strings.

        Parameters
        ----------
        describe : Callable[[BaseException], str], optional
            Turns a captured error into the failure message,
            by default `describe_error`

        Returns
        -------
        DugResult
        '''
        if self.timed_out:
            return Failure(f'Timed out after {format_deadline(self.deadline)}')
        if self.error is not None:
            return Failure(describe(self.error))
        return Records(tuple(self.value or ()))  # type: ignore[arg-type]


async def guard(deadline: float, operation: Awaitable[T]) -> Outcome[T]:
    '''
    Await `operation` for at most `deadline` seconds. Errors and timeouts
    are returned as data, so a failing operation never takes its
    siblings down with it.

    Parameters
    ----------
    deadline : float
        Seconds to wait, must be finite and positive.
    operation : Awaitable[T]

    Returns
    -------
    Outcome[T]
    '''
    if not deadline > 0 or deadline == float('inf'):
        if asyncio.iscoroutine(operation):
            operation.close()
        raise ValueError(f'Deadline must be finite and positive, got {deadline!r}')

    try:
        value = await asyncio.wait_for(operation, timeout=deadline)
    except asyncio.TimeoutError:
        logger.debug(f'Operation timed out after {format_deadline(deadline)}')
        return Outcome(deadline=deadline, timed_out=True)
    except Exception as exc:
        logger.debug(f'Operation failed: {exc!r}')
        return Outcome(deadline=deadline, error=exc)

    return Outcome(deadline=deadline, value=value)
