"""Scripted question/answer exchanges for interactive programs.

An ``ActionScript`` is a small state machine over an ordered list of
``Action`` objects. Each chunk of program output is fed to the script;
the script either hands back the answer to type, or fails because the
output does not fit the next expected question or because no question
is left.

    PENDING[0] --match--> PENDING[1] --match--> ... PENDING[n]
        |                                          |
        +--mismatch / exhausted--> FAILED          +--finish()--> SUCCEEDED

Scripts are built right before a session and thrown away after it.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Pattern, Sequence, Union

from ..errors import ProtocolExhausted, UnexpectedOutput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Action:
    """One expected prompt and the text to send when it shows up.

    ``question`` may be given as a string; it is compiled on construction.
    ``answer`` is left out of the repr since it usually holds a passphrase.
    """
    question: Pattern[str]
    answer: str = field(repr=False)

    def __post_init__(self):
        if isinstance(self.question, str):
            object.__setattr__(self, 'question', re.compile(self.question))

    def matches(self, output: str) -> bool:
        return self.question.search(output) is not None


class ScriptState(Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ActionScript:
    """Consumes actions strictly in order; never skips, reorders or retries."""

    def __init__(self, actions: Sequence[Union[Action, tuple]]):
        self._actions: List[Action] = [
            a if isinstance(a, Action) else Action(*a) for a in actions
        ]
        self._index = 0
        self._state = ScriptState.PENDING

    @property
    def state(self) -> ScriptState:
        return self._state

    @property
    def index(self) -> int:
        """Position of the next action to consume."""
        return self._index

    @property
    def pending(self) -> List[Action]:
        """Actions not consumed yet."""
        return self._actions[self._index:]

    @property
    def exhausted(self) -> bool:
        return self._index >= len(self._actions)

    def feed(self, output: str) -> str:
        """Match ``output`` against the next action and return its answer.

        Raises:
            ProtocolExhausted: Output arrived after every action was consumed.
            UnexpectedOutput: Output does not match the next action's question.
            RuntimeError: The script already succeeded or failed.
        """
        if self._state is not ScriptState.PENDING:
            raise RuntimeError(f"Action script already {self._state.value}")

        if self.exhausted:
            self._state = ScriptState.FAILED
            raise ProtocolExhausted(output)

        action = self._actions[self._index]
        if not action.matches(output):
            self._state = ScriptState.FAILED
            raise UnexpectedOutput(output, action.question.pattern, self._index)

        logger.debug("step %d matched /%s/", self._index, action.question.pattern)
        self._index += 1
        return action.answer

    def finish(self) -> None:
        """Mark the exchange as completed; trailing unconsumed actions are fine."""
        if self._state is ScriptState.FAILED:
            raise RuntimeError("Action script already failed")
        self._state = ScriptState.SUCCEEDED

    def fail(self) -> None:
        self._state = ScriptState.FAILED
