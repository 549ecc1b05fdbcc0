"""Terminal transports the matching loop can talk through.

Both transports expose the same two-call capability used by
``gpg_indicator.terminal.driver``:

- ``send(text)``: type text into the terminal.
- ``next_chunk()``: wait for the next piece of output; None means the
  other side is gone for good.

Backends:
- ``PtyTransport``: ``pexpect.spawn`` runs the command in a fresh
  pseudo-terminal via ``pty.fork()``. pexpect's calls block, so they are
  pushed to the default executor and awaited one at a time.
- ``CurrentTty``: reads and writes the terminal this process already
  owns (``os.ttyname`` of stdin, falling back to ``/dev/tty``).
"""

import asyncio
import codecs
import functools
import logging
import os
import sys
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

import pexpect

from ..config import DEFAULT_PROMPT_TIMEOUT
from ..errors import CommandError, EmptyRead, NotOpened, TtyBusy

logger = logging.getLogger(__name__)

# Fixed PTY dimensions for spawned programs
DEFAULT_ROWS = 24
DEFAULT_COLS = 80

# Bytes requested per read
READ_SIZE = 4096


class Transport(ABC):
    """Something the matching loop can read prompts from and answer into."""

    @abstractmethod
    async def send(self, text: str) -> None:
        ...

    @abstractmethod
    async def next_chunk(self) -> Optional[str]:
        ...


async def _in_executor(func, *args):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args))


class PtyTransport(Transport):
    """A command running in its own pseudo-terminal.

    Echo is turned off so typed answers are not read back as output, and
    ``TERM=dumb`` keeps escape sequences out of the prompts.

    Args:
        command: Executable name or path.
        args: Arguments, not including the executable.
        timeout: Seconds to wait for each chunk. When it runs out the child
            is terminated and the transport reports end of output. None
            waits forever.
        env: Extra environment variables for the child.
    """

    def __init__(
        self,
        command: str,
        args: List[str],
        *,
        timeout: Optional[float] = DEFAULT_PROMPT_TIMEOUT,
        env: Optional[Dict[str, str]] = None,
        rows: int = DEFAULT_ROWS,
        cols: int = DEFAULT_COLS,
    ):
        self.command = command
        self.timeout = timeout
        self._eof = False

        spawn_env = os.environ.copy()
        spawn_env['TERM'] = 'dumb'
        if env:
            spawn_env.update(env)

        try:
            self._process = pexpect.spawn(
                command,
                list(args),
                encoding='utf-8',
                codec_errors='replace',
                timeout=timeout,
                dimensions=(rows, cols),
                env=spawn_env,
                echo=False,
            )
        except (pexpect.ExceptionPexpect, OSError) as exc:
            raise CommandError(command, None, str(exc)) from exc

        logger.debug("pty: spawned %s (pid %s)", command, self._process.pid)

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def closed(self) -> bool:
        return self._process.closed

    async def send(self, text: str) -> None:
        await _in_executor(self._process.send, text)

    async def next_chunk(self) -> Optional[str]:
        if self._eof:
            return None
        try:
            return await _in_executor(
                self._process.read_nonblocking, READ_SIZE, self.timeout
            )
        except pexpect.EOF:
            self._eof = True
            return None
        except pexpect.TIMEOUT:
            logger.warning(
                "pty: no output from %s for %ss, terminating it",
                self.command, self.timeout,
            )
            self._eof = True
            await _in_executor(self._process.terminate, True)
            return None

    async def close(self) -> Tuple[Optional[int], Optional[int]]:
        """Reap the child and release the pty.

        A child that already hit end of output is waited for; one that is
        still talking is terminated.

        Returns:
            (exitstatus, signalstatus) as reported by pexpect.
        """
        if not self._process.closed:
            await _in_executor(self._shutdown)
        logger.debug(
            "pty: %s finished, exitstatus=%s signalstatus=%s",
            self.command, self._process.exitstatus, self._process.signalstatus,
        )
        return self._process.exitstatus, self._process.signalstatus

    def _shutdown(self) -> None:
        if self._eof and self._process.isalive():
            self._process.wait()
        self._process.close(force=True)


def _controlling_tty_path() -> str:
    try:
        return os.ttyname(sys.stdin.fileno())
    except (OSError, ValueError, AttributeError):
        return '/dev/tty'


# The terminal device is shared by the whole process; at most one
# CurrentTty may hold it at a time.
_holder: Optional["CurrentTty"] = None


class CurrentTty(Transport):
    """Direct read/write access to a terminal device this process owns.

    Must be opened before use and disposed afterwards; ``async with``
    does both.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path or _controlling_tty_path()
        self._fd: Optional[int] = None
        self._decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')

    @property
    def is_open(self) -> bool:
        return self._fd is not None

    async def open(self) -> None:
        global _holder

        if self._fd is not None:
            return
        if _holder is not None and _holder is not self:
            raise TtyBusy(self.path)

        self._fd = os.open(self.path, os.O_RDWR | os.O_NOCTTY)
        _holder = self
        logger.debug("tty: opened %s", self.path)

    async def read(self) -> str:
        """Return the next chunk of terminal input as text.

        Raises:
            NotOpened: ``open()`` has not succeeded.
            EmptyRead: The read returned no bytes.
        """
        if self._fd is None:
            raise NotOpened(self.path)
        data = await _in_executor(os.read, self._fd, READ_SIZE)
        if not data:
            raise EmptyRead(self.path)
        return self._decoder.decode(data)

    async def write(self, content: str) -> None:
        if self._fd is None:
            raise NotOpened(self.path)
        await _in_executor(self._write_all, self._fd, content.encode('utf-8'))

    @staticmethod
    def _write_all(fd: int, data: bytes) -> None:
        view = memoryview(data)
        while view:
            written = os.write(fd, view)
            view = view[written:]

    async def dispose(self) -> None:
        global _holder

        fd, self._fd = self._fd, None
        if _holder is self:
            _holder = None
        if fd is not None:
            os.close(fd)
            logger.debug("tty: closed %s", self.path)

    async def send(self, text: str) -> None:
        await self.write(text)

    async def next_chunk(self) -> Optional[str]:
        return await self.read()

    async def __aenter__(self) -> "CurrentTty":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.dispose()
