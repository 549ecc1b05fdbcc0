"""Key status and unlock operations against the local gpg-agent.

Each call goes back to gpg for a fresh key listing; nothing is cached,
since keys may be added, removed, locked or unlocked between calls.
Failures from any step propagate unchanged and nothing is retried.
"""

import contextlib
import logging
import re
from typing import List, Optional

from ..config import IndicatorConfig
from ..errors import KeyNotFound
from ..process import text_spawn
from ..terminal.actions import Action
from ..terminal.driver import expect_pty
from .agent import keyinfo_request, parse_keyinfo_reply
from .keys import KeyInfo, parse_gpg_keys
from .tempfiles import scoped_temp_file

logger = logging.getLogger(__name__)

# --fingerprint is given twice so subkeys get their fingerprint printed too
LIST_KEYS_ARGS = ['--fingerprint', '--fingerprint', '--with-keygrip']

OVERWRITE_PROMPT = re.compile(r"File .* exists\. Overwrite\? \(y/N\)")
PASSPHRASE_PROMPT = re.compile(r"Enter passphrase:")


def sign_args(key_id: str, document: str, signature: str) -> List[str]:
    """gpg arguments for a loopback-pinentry clear-sign of ``document``."""
    return [
        '--clear-sign', '--pinentry-mode', 'loopback', '--local-user', key_id,
        '--output', signature, document,
    ]


def unlock_actions(passphrase: str) -> List[Action]:
    """The prompts gpg shows while signing, in order.

    The overwrite prompt shows up because the signature file already
    exists; the passphrase is sent exactly as given, empty or not.
    """
    return [
        Action(OVERWRITE_PROMPT, 'y\n'),
        Action(PASSPHRASE_PROMPT, passphrase + '\n'),
    ]


class GpgAgentClient:
    """Answers "is key X unlocked" and "unlock key X with passphrase P"."""

    def __init__(self, config: Optional[IndicatorConfig] = None):
        self.config = config or IndicatorConfig()

    async def list_keys(self) -> List[KeyInfo]:
        """All keys of the keyring with fingerprints and keygrips."""
        raw = await text_spawn(self.config.gpg_program, LIST_KEYS_ARGS, '')
        return parse_gpg_keys(raw)

    async def resolve_key(self, key_id: str) -> KeyInfo:
        """Find the first key whose fingerprint contains ``key_id``.

        Signing keys are usually configured by a short id (a fingerprint
        suffix), so containment rather than equality decides. Hex case is
        ignored. When several keys contain the id, the first one listed wins.

        Raises:
            KeyNotFound: No listed key contains ``key_id``.
            CommandError: gpg could not list the keys.
        """
        needle = key_id.upper()
        for info in await self.list_keys():
            if needle in info.fingerprint.upper():
                logger.debug("resolved %s to keygrip %s", key_id, info.keygrip)
                return info
        raise KeyNotFound(key_id)

    async def is_unlocked(self, keygrip: str) -> bool:
        """Ask the agent whether the key material behind ``keygrip`` is cached.

        Raises:
            AgentError: The agent replied with an error line.
            MalformedResponse: The reply could not be parsed.
            CommandError: gpg-connect-agent failed.
        """
        reply = await text_spawn(self.config.agent_program, [], keyinfo_request(keygrip))
        return parse_keyinfo_reply(reply)

    async def is_key_id_unlocked(self, key_id: str) -> bool:
        info = await self.resolve_key(key_id)
        return await self.is_unlocked(info.keygrip)

    async def unlock_key(self, key_id: str, passphrase: str) -> None:
        """Unlock ``key_id`` in the agent by signing a throwaway document.

        gpg reads the passphrase from a terminal, so the signing runs in a
        pseudo-terminal and the passphrase is typed at the prompt. Once
        signing succeeds the agent caches the key; call ``is_unlocked`` for
        a confirmed state.

        Raises:
            KeyNotFound: ``key_id`` is not in the keyring.
            UnexpectedOutput: gpg printed an unexpected prompt.
            ProtocolExhausted: gpg kept prompting after the last answer.
            ChildProcessFailed: gpg exited non-zero (e.g. bad passphrase).
            CommandError: gpg could not be started.
        """
        await self.resolve_key(key_id)

        with contextlib.ExitStack() as stack:
            document = stack.enter_context(scoped_temp_file())
            signature = stack.enter_context(scoped_temp_file())

            logger.info("unlocking key %s", key_id)
            await expect_pty(
                self.config.gpg_program,
                sign_args(key_id, str(document), str(signature)),
                unlock_actions(passphrase),
                timeout=self.config.prompt_timeout,
            )


def create_client(config: Optional[IndicatorConfig] = None) -> GpgAgentClient:
    """Factory function for the client."""
    return GpgAgentClient(config)
