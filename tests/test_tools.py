import time

import pytest

from fakes import ADDRESS, HANG, FakeRunner, tool_output
from dug import (
    DIG,
    DRILL,
    CommandOutput,
    ExternalToolResolver,
    Failure,
    ProcessError,
    Records,
    ToolSpec,
    run_command,
)
from dug._tools import command_lines


class TestCommandLines:

    @pytest.mark.asyncio
    async def test_splits_non_empty_lines(self):
        runner = FakeRunner(default=CommandOutput(0, b"203.0.113.5\n\n  203.0.113.6  \n"))
        assert await command_lines("dig", ["x"], runner) == ["203.0.113.5", "203.0.113.6"]

    @pytest.mark.asyncio
    async def test_signal(self):
        runner = FakeRunner(default=CommandOutput(-9, b"", signaled=True))
        with pytest.raises(ProcessError, match="process terminated by signal"):
            await command_lines("dig", ["x"], runner)

    @pytest.mark.asyncio
    async def test_non_zero_exit(self):
        runner = FakeRunner(default=CommandOutput(9, b""))
        with pytest.raises(ProcessError, match="process failed with exit code 9"):
            await command_lines("dig", ["x"], runner)

    @pytest.mark.asyncio
    async def test_invalid_text(self):
        runner = FakeRunner(default=CommandOutput(0, b"\xff\xfe\xfa"))
        with pytest.raises(ProcessError, match="output not valid text"):
            await command_lines("dig", ["x"], runner)

    @pytest.mark.asyncio
    async def test_spawn_failure(self):
        with pytest.raises(ProcessError, match="failed to spawn drill"):
            await command_lines("drill", ["x"], FakeRunner())


def test_tool_argument_templates():
    assert DIG.argv("example.test", "A") == ["+short", "example.test", "A"]
    assert DRILL.argv("example.test", "AAAA") == ["-Q", "example.test", "AAAA"]
    assert DIG.label("AAAA") == "AAAA (dig)"


@pytest.mark.asyncio
async def test_resolver_emits_one_entry_per_record_type():
    runner = FakeRunner({
        ("dig", "A"): tool_output(ADDRESS),
        ("dig", "AAAA"): tool_output(),
    })
    results = await ExternalToolResolver(DIG, runner=runner).resolve("example.test")

    assert [res.source for res in results] == ["A (dig)", "AAAA (dig)"]
    assert results[0].result == Records((ADDRESS,))
    assert results[1].result == Records(())
    assert sorted(runner.calls) == [
        ("dig", ("+short", "example.test", "A")),
        ("dig", ("+short", "example.test", "AAAA")),
    ]


@pytest.mark.asyncio
async def test_sub_queries_fail_independently():
    runner = FakeRunner({
        ("drill", "A"): tool_output(ADDRESS),
        ("drill", "AAAA"): HANG,
    })
    start = time.monotonic()
    results = await ExternalToolResolver(DRILL, timeout=0.1, runner=runner).resolve("example.test")

    assert results[0].result == Records((ADDRESS,))
    assert results[1].result == Failure("Timed out after 0.1s")
    assert time.monotonic() - start < 1.5


@pytest.mark.asyncio
async def test_missing_tool_is_a_failure_not_a_crash():
    tool = ToolSpec(command="dug-test-no-such-tool", args=DIG.args)
    results = await ExternalToolResolver(tool, runner=run_command).resolve("example.test")

    assert len(results) == 2
    for res in results:
        assert res.failed
        assert str(res.result).startswith("failed to spawn dug-test-no-such-tool")
