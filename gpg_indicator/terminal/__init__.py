"""Scripted automation of programs that insist on a real terminal.

- ``actions``: ``Action`` and the ``ActionScript`` state machine.
- ``transport``: ``PtyTransport`` (pexpect pseudo-terminal) and
  ``CurrentTty`` (the terminal this process already owns).
- ``driver``: the matching loop, ``expect_pty`` and ``answer_tty``.
"""

from .actions import Action, ActionScript, ScriptState
from .driver import answer_tty, exchange, expect_pty
from .transport import CurrentTty, PtyTransport, Transport

__all__ = [
    'Action',
    'ActionScript',
    'ScriptState',
    'CurrentTty',
    'PtyTransport',
    'Transport',
    'answer_tty',
    'exchange',
    'expect_pty',
]
