"""
nickswap.config — YAML Configuration Loader
============================================

Reads ``config.yaml`` for the soft settings: which game to watch, how many
nickname edits may be in flight at once, and the log level.  Secrets
(``DISCORD_TOKEN``, ``DATABASE_URL``) come from ``.env`` instead.

Usage::

    from nickswap.config import load_config

    cfg = load_config()              # reads ./config.yaml by default
    print(cfg.target_game_name)      # "League of Legends"
    print(cfg.rename_concurrency)    # 10
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from nickswap.constants import DEFAULT_GAME_NAME, MAX_RENAMES_IN_FLIGHT


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class NickswapConfig:
    """Immutable configuration loaded from ``config.yaml``.

    The target game may be identified by name, by application id, or both;
    an activity matching either one counts.
    """

    target_game_name: str | None = DEFAULT_GAME_NAME
    target_application_id: int | None = None

    # Upper bound on concurrent nickname edits per fan-out
    rename_concurrency: int = MAX_RENAMES_IN_FLIGHT

    log_level: str = "INFO"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> NickswapConfig:
    """Read *path* and return a :class:`NickswapConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ValueError
        If neither a game name nor an application id is configured, or the
        concurrency limit is not positive.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    game_name = raw.get("target_game_name", DEFAULT_GAME_NAME) or None
    app_id = raw.get("target_application_id")
    if game_name is None and app_id is None:
        raise ValueError(
            "config.yaml must set target_game_name or target_application_id"
        )

    concurrency = int(raw.get("rename_concurrency", MAX_RENAMES_IN_FLIGHT))
    if concurrency < 1:
        raise ValueError(f"rename_concurrency must be >= 1, got {concurrency}")

    return NickswapConfig(
        target_game_name=game_name,
        target_application_id=int(app_id) if app_id is not None else None,
        rename_concurrency=concurrency,
        log_level=str(raw.get("log_level", "INFO")).upper(),
    )
