"""Run external commands to completion and collect their text output."""

import asyncio
import logging
from typing import Dict, List, Optional

from .errors import CommandError

logger = logging.getLogger(__name__)


async def sleep(seconds: float) -> None:
    """Suspend the calling task for ``seconds``.

    Provided for callers that poll the agent; nothing in the package
    sleeps on its own.
    """
    await asyncio.sleep(seconds)


async def _read_all(stream: Optional[asyncio.StreamReader]) -> bytes:
    """Read a pipe until end of stream, keeping every chunk."""
    if stream is None:
        return b""
    chunks: List[bytes] = []
    while True:
        chunk = await stream.read(4096)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


async def _feed_stdin(command: str, stdin: asyncio.StreamWriter, data: bytes) -> None:
    """Write the whole payload, then close stdin so the child sees end of input."""
    try:
        if data:
            stdin.write(data)
            await stdin.drain()
    except (BrokenPipeError, ConnectionResetError) as exc:
        raise CommandError(command, None, f"could not write stdin: {exc}") from exc
    finally:
        stdin.close()


async def text_spawn(
    command: str,
    args: List[str],
    input_text: str = "",
    *,
    env: Optional[Dict[str, str]] = None,
) -> str:
    """Run ``command`` with ``args``, feed it ``input_text`` and return its stdout.

    Args:
        command: Executable name or path.
        args: Options and arguments, not including the executable.
        input_text: Text written to stdin before it is closed. May be empty.
        env: Environment for the child. Defaults to the current environment.

    Returns:
        Everything the command wrote to stdout, decoded as UTF-8.

    Raises:
        CommandError: The command could not be started, its stdin could not
            be delivered, or it exited with a non-zero code.
    """
    logger.debug("spawn: %s %s", command, " ".join(args))
    try:
        proc = await asyncio.create_subprocess_exec(
            command,
            *args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
    except OSError as exc:
        raise CommandError(command, None, str(exc)) from exc

    feed = _feed_stdin(command, proc.stdin, input_text.encode("utf-8"))
    try:
        _, stdout, stderr = await asyncio.gather(
            feed,
            _read_all(proc.stdout),
            _read_all(proc.stderr),
        )
    except CommandError:
        if proc.returncode is None:
            proc.kill()
        await proc.wait()
        raise

    returncode = await proc.wait()
    logger.debug("spawn: %s exited with %s", command, returncode)

    error_message = stderr.decode("utf-8", errors="replace")
    if returncode != 0:
        raise CommandError(command, returncode, error_message)

    return stdout.decode("utf-8", errors="replace")
