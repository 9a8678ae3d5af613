"""Load ~/.filededup.config (TOML) with env-var overrides."""
from __future__ import annotations
import os
try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[no-redef]  # Python < 3.11 backport
from pathlib import Path
from typing import Any

_DEFAULT: dict[str, Any] = {
    "server": {
        "url": "http://localhost:8080",
    },
    "agent": {
        "machine_id": "",
        "batch_size": 1000,
        "workers": 0,
        "queue_size": 0,
        "skip_large": False,
        "max_size": 1024 * 1024 * 1024,
        "progress_interval": 3,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def config_path() -> Path:
    if "FILEDEDUP_CONFIG_PATH" in os.environ:
        return Path(os.environ["FILEDEDUP_CONFIG_PATH"])
    return Path.home() / ".filededup.config"


def load_config() -> dict[str, Any]:
    cfg = dict(_DEFAULT)
    for section in cfg:
        cfg[section] = dict(cfg[section])

    path = config_path()
    if path.exists():
        with open(path, "rb") as f:
            user_cfg = tomllib.load(f)
        cfg = _deep_merge(cfg, user_cfg)

    # Env var overrides
    if url := os.environ.get("FILEDEDUP_SERVER"):
        cfg["server"]["url"] = url
    if machine_id := os.environ.get("FILEDEDUP_MACHINE_ID"):
        cfg["agent"]["machine_id"] = machine_id
    if db_path := os.environ.get("FILEDEDUP_DB_PATH"):
        cfg["_db_path"] = db_path

    return cfg


# Module-level singleton: loaded once per process
_config: dict[str, Any] | None = None


def get_config() -> dict[str, Any]:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def get_server_url() -> str:
    return get_config()["server"]["url"]


def get_agent_config() -> dict[str, Any]:
    return get_config()["agent"]
