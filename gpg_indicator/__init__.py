"""Report and unlock the gpg signing key held by gpg-agent.

    from gpg_indicator import create_client

    client = create_client()
    if not await client.is_key_id_unlocked("89ABCDEF"):
        await client.unlock_key("89ABCDEF", passphrase)
"""

from .config import IndicatorConfig, load_config
from .errors import (
    AgentError,
    ChildProcessFailed,
    CommandError,
    EmptyRead,
    GpgIndicatorError,
    KeyNotFound,
    MalformedResponse,
    NotOpened,
    ProtocolExhausted,
    TtyBusy,
    UnexpectedOutput,
)
from .gpg import GpgAgentClient, KeyInfo, KeyType, create_client, parse_gpg_keys
from .process import sleep, text_spawn

__all__ = [
    'IndicatorConfig',
    'load_config',
    'GpgAgentClient',
    'KeyInfo',
    'KeyType',
    'create_client',
    'parse_gpg_keys',
    'sleep',
    'text_spawn',
    'GpgIndicatorError',
    'CommandError',
    'AgentError',
    'MalformedResponse',
    'KeyNotFound',
    'UnexpectedOutput',
    'ProtocolExhausted',
    'ChildProcessFailed',
    'NotOpened',
    'EmptyRead',
    'TtyBusy',
]
