"""gpg and gpg-agent key handling."""

from .client import GpgAgentClient, create_client
from .keys import KeyInfo, KeyType, parse_gpg_keys

__all__ = ['GpgAgentClient', 'create_client', 'KeyInfo', 'KeyType', 'parse_gpg_keys']
