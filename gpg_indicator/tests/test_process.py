"""Tests for the process runner."""

import asyncio
import sys
import textwrap
from unittest.mock import AsyncMock, patch

import pytest

from gpg_indicator.errors import CommandError
from gpg_indicator.process import sleep, text_spawn


def python(script: str):
    return sys.executable, ["-c", textwrap.dedent(script)]


class TestTextSpawn:

    @pytest.mark.asyncio
    async def test_returns_stdout(self):
        command, args = python("print('S KEYINFO ABCD'); print('OK')")
        assert await text_spawn(command, args) == "S KEYINFO ABCD\nOK\n"

    @pytest.mark.asyncio
    async def test_feeds_stdin(self):
        command, args = python("import sys; sys.stdout.write(sys.stdin.read().upper())")
        assert await text_spawn(command, args, "keyinfo abcd\n") == "KEYINFO ABCD\n"

    @pytest.mark.asyncio
    async def test_stdin_closed_when_input_empty(self):
        """A child reading to end of input must not hang."""
        command, args = python("import sys; data = sys.stdin.read(); print(len(data))")
        output = await asyncio.wait_for(text_spawn(command, args, ""), timeout=10)
        assert output == "0\n"

    @pytest.mark.asyncio
    async def test_keeps_every_chunk(self):
        """Output written in several bursts is concatenated, not overwritten."""
        command, args = python("""
            import sys, time
            for i in range(5):
                sys.stdout.write(f"chunk {i}\\n")
                sys.stdout.flush()
                time.sleep(0.05)
        """)
        output = await text_spawn(command, args)
        assert output.splitlines() == [f"chunk {i}" for i in range(5)]

    @pytest.mark.asyncio
    async def test_large_output(self):
        command, args = python("import sys; sys.stdout.write('x' * 200000)")
        assert len(await text_spawn(command, args)) == 200000

    @pytest.mark.asyncio
    async def test_nonzero_exit(self):
        command, args = python("import sys; sys.stderr.write('no agent'); sys.exit(3)")
        with pytest.raises(CommandError) as excinfo:
            await text_spawn(command, args)
        assert excinfo.value.returncode == 3
        assert excinfo.value.stderr == "no agent"
        assert excinfo.value.command == sys.executable

    @pytest.mark.asyncio
    async def test_missing_executable(self):
        with pytest.raises(CommandError) as excinfo:
            await text_spawn("gpg-indicator-no-such-program", [])
        assert excinfo.value.returncode is None

    @pytest.mark.asyncio
    async def test_independent_calls_run_concurrently(self):
        command, args = python("import sys; print(sys.argv[1])")
        results = await asyncio.gather(
            text_spawn(command, args + ["one"]),
            text_spawn(command, args + ["two"]),
        )
        assert results == ["one\n", "two\n"]


class TestSleep:

    @pytest.mark.asyncio
    async def test_delegates_to_asyncio(self):
        with patch("gpg_indicator.process.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await sleep(1.5)
        mock_sleep.assert_awaited_once_with(1.5)
