import os
from collections.abc import Mapping


def is_ci(environ: Mapping[str, str] | None = None) -> bool:
    """Whether the current process runs in a CI pipeline rather than for a person at a terminal."""
    env = os.environ if environ is None else environ
    if env.get("CI", "").strip().lower() in ("true", "1"):
        return True
    return bool(env.get("GITHUB_ACTIONS"))
