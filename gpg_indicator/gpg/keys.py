"""Key records parsed from ``gpg --fingerprint --fingerprint --with-keygrip``."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List


class KeyType(Enum):
    PRIMARY = "pub"
    SUBORDINATE = "sub"


@dataclass(frozen=True)
class KeyInfo:
    """One key of the keyring as gpg reports it."""
    type: KeyType
    capabilities: str  # capability letters as printed (E, S, C, A)
    fingerprint: str   # hex, whitespace removed
    keygrip: str       # agent-side handle of the key material


# A key block is three consecutive lines:
#   pub   rsa4096 2020-01-01 [SC] [expires: 2030-01-01]
#         1111 2222 3333 4444 5555  6666 7777 8888 9999 0000
#         Keygrip = ABCD1234...
# group 1: pub or sub, 2: capabilities, 3: fingerprint with spaces, 4: keygrip
_KEY_BLOCK = re.compile(
    r"^[ \t]*(pub|sub)[ \t]+\S+[^\n]*?\[([A-Za-z]*)\][^\n]*\n"
    r"[ \t]*([0-9A-Fa-f]+(?:[ \t]+[0-9A-Fa-f]+)*)[ \t]*\r?\n"
    r"[ \t]*Keygrip[ \t]*=[ \t]*([0-9A-Fa-f]+)",
    re.MULTILINE,
)

_WHITESPACE = re.compile(r"\s+")


def parse_gpg_keys(raw_text: str) -> List[KeyInfo]:
    """Extract every well-formed key block from gpg's listing, in order.

    Blocks missing a line or with a broken header are skipped; text
    between blocks (uid lines, keyring headers) is ignored.

    Args:
        raw_text: Output of ``gpg --fingerprint --fingerprint --with-keygrip``.

    Returns:
        The parsed records in document order; empty if none matched.
    """
    infos: List[KeyInfo] = []
    for matched in _KEY_BLOCK.finditer(raw_text):
        infos.append(KeyInfo(
            type=KeyType(matched.group(1)),
            capabilities=matched.group(2),
            fingerprint=_WHITESPACE.sub("", matched.group(3)),
            keygrip=matched.group(4),
        ))
    return infos
