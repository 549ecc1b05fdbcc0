"""KEYINFO requests to gpg-agent through gpg-connect-agent.

A successful reply is two lines, a status line and the ``OK`` sentinel:

    S KEYINFO CB18328AD05158F97CC8F33682F7AD291F52CB08 D - - - P - - -
    OK

Status line fields after ``S KEYINFO``: keygrip, type, serial number,
id string, cached, protection, fingerprint, ttl, flags. The cached field
(zero-based token 6) is ``1`` when the secret is held by the agent. A failed request
is a single ``ERR`` line.
"""

from ..errors import AgentError, MalformedResponse

KEYINFO_TOKEN_COUNT = 11
CACHED_TOKEN_INDEX = 6
# Protection field; never "1" in gpg's own replies (P, C, - or ?).
PROTECTION_TOKEN_INDEX = 7


def keyinfo_request(keygrip: str) -> str:
    return f"KEYINFO {keygrip}\n"


def parse_keyinfo_reply(reply: str) -> bool:
    """Return whether the KEYINFO reply reports the key as unlocked.

    Some agents' status lines carry the cached flag one slot later, so a
    ``1`` in the slot after the cached field counts as well.

    Raises:
        AgentError: The agent answered with a one-line error.
        MalformedResponse: The status line does not have 11 tokens, or the
            reply is empty.
    """
    lines = [line for line in reply.splitlines() if line.strip()]
    if not lines:
        raise MalformedResponse(reply, "Empty KEYINFO reply")
    if len(lines) == 1 or lines[0].startswith("ERR"):
        raise AgentError(lines[0])

    tokens = lines[0].split()
    if len(tokens) != KEYINFO_TOKEN_COUNT:
        raise MalformedResponse(lines[0])

    return "1" in (tokens[CACHED_TOKEN_INDEX], tokens[PROTECTION_TOKEN_INDEX])
