"""
Active profile selection and profile section naming.
"""
import os
from typing import Mapping, Optional, Tuple

DEFAULT_PROFILE = "default"
PROFILE_ENV_VAR = "AWS_DEFAULT_PROFILE"


def active_profile(env: Optional[Mapping[str, str]] = None) -> str:
    """Return ``AWS_DEFAULT_PROFILE`` when set and non-empty, else ``default``."""
    env = os.environ if env is None else env
    return env.get(PROFILE_ENV_VAR) or DEFAULT_PROFILE


def profile_sections(profile: str) -> Tuple[str, str]:
    """
    Section names that may hold a profile, in lookup order.

    The credentials file uses the bare name, the config file prefixes
    non-default profiles with ``profile``.
    """
    return profile, f"profile {profile}"
