"""Signing settings of a git repository."""

import logging
from dataclasses import dataclass
from typing import List, Optional

from .config import IndicatorConfig
from .errors import CommandError
from .process import text_spawn

logger = logging.getLogger(__name__)

# git's spellings of a true boolean
_TRUTHY = {"true", "yes", "on", "1"}


@dataclass
class SigningConfig:
    key_id: Optional[str] = None
    sign_required: bool = False


async def _get(git: str, base_args: List[str], name: str) -> Optional[str]:
    """``git config --get name``; None when the key is unset."""
    try:
        value = await text_spawn(git, base_args + ['config', '--get', name])
    except CommandError as exc:
        # exit code 1 is git's "key not set"
        if exc.returncode == 1:
            return None
        raise
    return value.strip() or None


async def read_signing_config(
    repo: Optional[str] = None,
    *,
    config: Optional[IndicatorConfig] = None,
) -> SigningConfig:
    """Read ``user.signingkey`` and ``commit.gpgsign`` for ``repo``.

    Args:
        repo: Repository path; the current directory when None.
        config: Supplies the git executable.

    Raises:
        CommandError: git failed for a reason other than an unset key.
    """
    config = config or IndicatorConfig()
    base_args = ['-C', repo] if repo else []

    key_id = await _get(config.git_program, base_args, 'user.signingkey')
    gpg_sign = await _get(config.git_program, base_args, 'commit.gpgsign')

    signing = SigningConfig(
        key_id=key_id,
        sign_required=(gpg_sign or "").lower() in _TRUTHY,
    )
    logger.debug("signing config for %s: %s", repo or ".", signing)
    return signing
