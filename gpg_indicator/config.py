"""Runtime configuration.

Values come from the environment, optionally seeded from a ``.env`` file.

Usage:
    from gpg_indicator.config import load_config

    config = load_config()              # reads ./.env if present
    config = IndicatorConfig(gpg_program="/usr/local/bin/gpg")

Environment Variables:
    GPG_INDICATOR_GPG: gpg executable (default: gpg)
    GPG_INDICATOR_CONNECT_AGENT: gpg-connect-agent executable (default: gpg-connect-agent)
    GPG_INDICATOR_GIT: git executable (default: git)
    GPG_INDICATOR_PROMPT_TIMEOUT: Seconds to wait for each interactive prompt;
        0 or empty waits forever (default: 30)
    GPG_INDICATOR_KEY_ID: Signing key id used when none is given explicitly
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Hard ceiling on how long to wait for the next prompt chunk.
DEFAULT_PROMPT_TIMEOUT = 30.0


def _prompt_timeout_from_env() -> Optional[float]:
    raw = os.environ.get("GPG_INDICATOR_PROMPT_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_PROMPT_TIMEOUT
    value = float(raw)
    return value if value > 0 else None


@dataclass
class IndicatorConfig:
    """Executables and limits used when talking to gpg and gpg-agent."""
    gpg_program: str = field(default_factory=lambda: os.environ.get("GPG_INDICATOR_GPG", "gpg"))
    agent_program: str = field(default_factory=lambda: os.environ.get("GPG_INDICATOR_CONNECT_AGENT", "gpg-connect-agent"))
    git_program: str = field(default_factory=lambda: os.environ.get("GPG_INDICATOR_GIT", "git"))
    prompt_timeout: Optional[float] = field(default_factory=_prompt_timeout_from_env)
    key_id: Optional[str] = field(default_factory=lambda: os.environ.get("GPG_INDICATOR_KEY_ID") or None)


def load_config(env_file: Optional[str] = ".env") -> IndicatorConfig:
    """Load ``env_file`` into the environment and build a config from it.

    Variables already set in the environment win over the file.

    Args:
        env_file: Path to a dotenv file, or None to skip file loading.

    Returns:
        A freshly populated IndicatorConfig.
    """
    if env_file:
        load_dotenv(env_file)
    return IndicatorConfig()
