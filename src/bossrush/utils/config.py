import os
from pathlib import Path

from bossrush.game_server.core.errors import StartupError

_PACKAGE_CONFIG_DIR = Path(__file__).resolve().parent.parent / "game_server" / "config"

STORE_BACKENDS = ("file", "memory")


def get_world_data_path() -> Path:
    """Get the data directory (set BOSSRUSH_DATA_DIR or run from repo root).

    The directory may not exist yet; the store and event log create it.
    """
    env_path = os.getenv("BOSSRUSH_DATA_DIR")
    if env_path:
        world_data = Path(env_path)
    else:
        # Assume CWD is repo root
        world_data = Path.cwd() / "world-data"

    return world_data


def get_game_config_path() -> Path:
    """Get the game config path, defaulting to the packaged ``game.yaml``."""
    env_path = os.getenv("BOSSRUSH_CONFIG")
    if env_path:
        return Path(env_path)
    return _PACKAGE_CONFIG_DIR / "game.yaml"


def get_store_backend() -> str:
    backend = os.getenv("BOSSRUSH_STORE", "file").strip().lower()
    if backend not in STORE_BACKENDS:
        raise StartupError(
            f"Unknown BOSSRUSH_STORE '{backend}', expected one of {', '.join(STORE_BACKENDS)}"
        )
    return backend


def get_port() -> int:
    raw = os.getenv("PORT", "8000")
    try:
        return int(raw)
    except ValueError as exc:
        raise StartupError(f"PORT must be an integer, got '{raw}'") from exc
