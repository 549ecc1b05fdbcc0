"""Drive interactive programs with an ordered question/answer script.

Unlike a free-form terminal session, every chunk the program prints must
fit the next scripted question, and the answer is written before the next
chunk is looked at. This is what passphrase prompts need: the program
reads a secret from a real terminal, and we type it exactly when asked.
"""

import logging
from typing import Dict, List, Optional, Sequence

from ..config import DEFAULT_PROMPT_TIMEOUT
from ..errors import ChildProcessFailed
from .actions import Action, ActionScript
from .transport import CurrentTty, PtyTransport, Transport

logger = logging.getLogger(__name__)


async def exchange(
    transport: Transport,
    script: ActionScript,
    *,
    stop_when_exhausted: bool = False,
) -> None:
    """Run the matching loop until the transport reports end of output.

    Chunks are handled strictly in arrival order: chunk N+1 is not read
    until the answer to chunk N has been written.

    Args:
        transport: Where prompts come from and answers go.
        script: The ordered actions; consumed in place.
        stop_when_exhausted: Return as soon as the last action has been
            answered instead of waiting for end of output.

    Raises:
        UnexpectedOutput: A chunk did not match the next action.
        ProtocolExhausted: A chunk arrived with no action left.
    """
    try:
        while not (stop_when_exhausted and script.exhausted):
            output = await transport.next_chunk()
            if output is None:
                break
            logger.debug("chunk %d: %d chars", script.index, len(output))
            answer = script.feed(output)
            await transport.send(answer)
    except BaseException:
        script.fail()
        raise


async def expect_pty(
    command: str,
    args: List[str],
    actions: Sequence[Action],
    *,
    timeout: Optional[float] = DEFAULT_PROMPT_TIMEOUT,
    env: Optional[Dict[str, str]] = None,
) -> None:
    """Run ``command`` in a pseudo-terminal and answer its prompts.

    The session ends when the program exits. Exit code 0 is success even
    if trailing actions were never needed.

    Args:
        command: Executable name or path.
        args: Arguments, not including the executable.
        actions: Expected prompts and their answers, in order.
        timeout: Seconds to wait for each chunk before the program is
            terminated. None waits forever.
        env: Extra environment variables for the program.

    Raises:
        CommandError: The program could not be started.
        UnexpectedOutput: The program printed something other than the
            next expected prompt.
        ProtocolExhausted: The program printed more prompts than scripted.
        ChildProcessFailed: The program exited non-zero or was killed.
    """
    script = ActionScript(actions)
    transport = PtyTransport(command, args, timeout=timeout, env=env)
    try:
        await exchange(transport, script)
    finally:
        exitstatus, signalstatus = await transport.close()

    if exitstatus != 0 or signalstatus is not None:
        script.fail()
        raise ChildProcessFailed(command, exitstatus, signalstatus)
    script.finish()
    logger.debug("%s answered %d of %d prompts", command, script.index, len(actions))


async def answer_tty(tty: CurrentTty, actions: Sequence[Action]) -> None:
    """Answer prompts that appear on an already opened terminal.

    There is no child process to watch here, so the exchange is over once
    every action has been answered.

    Raises:
        NotOpened: ``tty`` was not opened.
        EmptyRead: The terminal hung up mid-exchange.
        UnexpectedOutput: Input did not match the next action.
    """
    script = ActionScript(actions)
    await exchange(tty, script, stop_when_exhausted=True)
    script.finish()
