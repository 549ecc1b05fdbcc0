"""Tests for the direct terminal channel and the PTY transport."""

import asyncio
import os
import sys
import tty

import pytest

from gpg_indicator.errors import EmptyRead, NotOpened, TtyBusy, UnexpectedOutput
from gpg_indicator.terminal.actions import Action
from gpg_indicator.terminal.driver import answer_tty
from gpg_indicator.terminal.transport import CurrentTty, PtyTransport


@pytest.fixture
def pty_pair():
    """A raw pseudo-terminal pair: (master fd, slave device path)."""
    master, slave = os.openpty()
    tty.setraw(slave)
    path = os.ttyname(slave)
    yield master, path
    for fd in (master, slave):
        try:
            os.close(fd)
        except OSError:
            pass


@pytest.fixture
def empty_file(tmp_path):
    path = tmp_path / "empty"
    path.write_bytes(b"")
    return str(path)


async def read_master(master: int) -> bytes:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, os.read, master, 1024)


class TestCurrentTtyLifecycle:

    @pytest.mark.asyncio
    async def test_read_before_open(self, empty_file):
        channel = CurrentTty(empty_file)
        with pytest.raises(NotOpened):
            await channel.read()

    @pytest.mark.asyncio
    async def test_write_before_open(self, empty_file):
        channel = CurrentTty(empty_file)
        with pytest.raises(NotOpened):
            await channel.write("x")

    @pytest.mark.asyncio
    async def test_dispose_without_open_is_safe(self, empty_file):
        channel = CurrentTty(empty_file)
        await channel.dispose()
        await channel.dispose()
        assert not channel.is_open

    @pytest.mark.asyncio
    async def test_dispose_after_failed_open(self, tmp_path):
        channel = CurrentTty(str(tmp_path / "missing" / "tty"))
        with pytest.raises(OSError):
            await channel.open()
        await channel.dispose()
        assert not channel.is_open

    @pytest.mark.asyncio
    async def test_zero_byte_read_is_an_error(self, empty_file):
        async with CurrentTty(empty_file) as channel:
            with pytest.raises(EmptyRead):
                await channel.read()

    @pytest.mark.asyncio
    async def test_only_one_holder_at_a_time(self, empty_file):
        first = CurrentTty(empty_file)
        second = CurrentTty(empty_file)
        await first.open()
        try:
            with pytest.raises(TtyBusy):
                await second.open()
        finally:
            await first.dispose()

        await second.open()
        assert second.is_open
        await second.dispose()

    @pytest.mark.asyncio
    async def test_reopen_same_instance_is_noop(self, empty_file):
        async with CurrentTty(empty_file) as channel:
            await channel.open()
            assert channel.is_open
        assert not channel.is_open


class TestCurrentTtyIO:

    @pytest.mark.asyncio
    async def test_read_and_write(self, pty_pair):
        master, path = pty_pair
        async with CurrentTty(path) as channel:
            os.write(master, "Enter passphrase: ".encode())
            assert await channel.read() == "Enter passphrase: "

            await channel.write("s3cret\n")
            assert await read_master(master) == b"s3cret\n"

    @pytest.mark.asyncio
    async def test_answer_tty_runs_script(self, pty_pair):
        master, path = pty_pair
        actions = [
            Action(r"Overwrite\?", "y\n"),
            Action(r"Enter passphrase:", "pw\n"),
        ]
        async with CurrentTty(path) as channel:
            task = asyncio.create_task(answer_tty(channel, actions))

            os.write(master, b"File f exists. Overwrite? (y/N) ")
            assert await read_master(master) == b"y\n"
            os.write(master, b"Enter passphrase: ")
            assert await read_master(master) == b"pw\n"

            await asyncio.wait_for(task, timeout=5)

    @pytest.mark.asyncio
    async def test_answer_tty_mismatch(self, pty_pair):
        master, path = pty_pair
        async with CurrentTty(path) as channel:
            task = asyncio.create_task(
                answer_tty(channel, [Action(r"Enter passphrase:", "pw\n")])
            )
            os.write(master, b"Something else\n")
            with pytest.raises(UnexpectedOutput):
                await asyncio.wait_for(task, timeout=5)

    @pytest.mark.asyncio
    async def test_answer_tty_requires_open(self, empty_file):
        with pytest.raises(NotOpened):
            await answer_tty(CurrentTty(empty_file), [Action("x", "y")])


class TestPtyTransport:

    @pytest.mark.asyncio
    async def test_reads_until_eof_and_reports_exit(self):
        transport = PtyTransport(
            sys.executable, ["-c", "print('hello'); raise SystemExit(4)"], timeout=10
        )
        chunks = []
        while True:
            chunk = await transport.next_chunk()
            if chunk is None:
                break
            chunks.append(chunk)

        exitstatus, signalstatus = await transport.close()
        assert "hello" in "".join(chunks)
        assert exitstatus == 4
        assert signalstatus is None
        assert transport.closed

    @pytest.mark.asyncio
    async def test_answers_are_not_echoed(self):
        script = "import sys; sys.stdout.write('> '); sys.stdout.flush(); sys.stdin.readline()"
        transport = PtyTransport(sys.executable, ["-c", script], timeout=10)
        assert await transport.next_chunk() == "> "
        await transport.send("hidden\n")
        rest = []
        while True:
            chunk = await transport.next_chunk()
            if chunk is None:
                break
            rest.append(chunk)
        await transport.close()
        assert "hidden" not in "".join(rest)
