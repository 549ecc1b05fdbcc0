"""Error types raised by gpg-indicator.

Every failure in the process, terminal and agent layers is one of these
exceptions. They are raised to the immediate caller unchanged; nothing in
the package downgrades or retries them. The command line maps each kind to
its own message (see ``gpg_indicator.__main__.describe_error``).
"""

from typing import Optional


class GpgIndicatorError(Exception):
    """Base class for gpg-indicator errors."""
    pass


class CommandError(GpgIndicatorError):
    """An external command could not be started or exited non-zero.

    ``returncode`` is None when the process never ran (missing executable,
    permission denied) or when its stdin could not be delivered.
    """

    def __init__(
        self,
        command: str,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.returncode is None:
            message = f"Command {self.command} failed to run"
        else:
            message = f"Command {self.command} failed, return code: {self.returncode}"
        if self.stderr:
            message += f", stderr: {self.stderr.strip()}"
        return message


class AgentError(GpgIndicatorError):
    """The agent answered with its one-line error reply."""

    def __init__(self, reply: str):
        self.reply = reply
        super().__init__(f"gpg-agent error: {reply}")


class MalformedResponse(GpgIndicatorError):
    """The agent reply did not have the expected token layout."""

    def __init__(self, reply: str, reason: str = "Fail to parse KEYINFO output"):
        self.reply = reply
        self.reason = reason
        super().__init__(f"{reason}: {reply!r}")


class KeyNotFound(GpgIndicatorError):
    """No key in the keyring matches the requested identifier."""

    def __init__(self, key_id: str):
        self.key_id = key_id
        super().__init__(f"Can not find key with ID: {key_id}")


class UnexpectedOutput(GpgIndicatorError):
    """An interactive program printed something the next action does not expect."""

    def __init__(self, output: str, pattern: str, index: int):
        self.output = output
        self.pattern = pattern
        self.index = index
        super().__init__(
            f"Fail to match output of step {index}: expected /{pattern}/, got {output!r}"
        )


class ProtocolExhausted(GpgIndicatorError):
    """An interactive program printed output after every action was used."""

    def __init__(self, output: str):
        self.output = output
        super().__init__(f"No scripted action left for output: {output!r}")


class ChildProcessFailed(GpgIndicatorError):
    """An interactive child exited non-zero or was killed by a signal."""

    def __init__(
        self,
        command: str,
        exitstatus: Optional[int] = None,
        signalstatus: Optional[int] = None,
    ):
        self.command = command
        self.exitstatus = exitstatus
        self.signalstatus = signalstatus

        if signalstatus is not None:
            detail = f"killed by signal {signalstatus}"
        else:
            detail = f"return code: {exitstatus}"
        super().__init__(f"Command {command} failed, {detail}")


class NotOpened(GpgIndicatorError):
    """The terminal channel was used before ``open()`` succeeded."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        super().__init__("TTY not opened")


class EmptyRead(GpgIndicatorError):
    """A terminal read returned zero bytes (peer hung up or end of file)."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        super().__init__(f"Empty read from TTY {path or ''}".rstrip())


class TtyBusy(GpgIndicatorError):
    """The controlling terminal is already held by another channel."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"TTY {path} is already open; dispose it first")
