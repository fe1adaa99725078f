"""TOML config loader: defaults + optional override file."""

import os
import tomllib
from pathlib import Path

import tomli_w

DEFAULTS_PATH = Path(__file__).parent.parent.parent.parent / "config" / "defaults.toml"

SERVICE_URL_ENV = "SPOOF_SERVICE_URL"


def load_defaults() -> dict:
    """Load the global defaults.toml."""
    with open(DEFAULTS_PATH, "rb") as f:
        return tomllib.load(f)


def load_config(override_toml: Path | None = None) -> dict:
    """Load defaults, merge an override file over them, then apply env vars."""
    config = load_defaults()
    if override_toml is not None:
        _deep_merge(config, load_override(override_toml))

    env_url = os.environ.get(SERVICE_URL_ENV)
    if env_url:
        config.setdefault("service", {})["base_url"] = env_url
    return config


def load_override(path: Path) -> dict:
    """Read an override TOML file; a missing file is empty."""
    if not path.exists():
        return {}
    with open(path, "rb") as f:
        return tomllib.load(f)


def save_config(path: Path, config: dict) -> None:
    """Write an override TOML file."""
    with open(path, "wb") as f:
        tomli_w.dump(config, f)


def get_service_url(config: dict) -> str:
    """Get the remote service base URL, raising if not configured."""
    url = config.get("service", {}).get("base_url", "")
    if not url:
        raise ValueError("Service URL not configured: service.base_url")
    return url.rstrip("/")


def _deep_merge(base: dict, override: dict) -> None:
    """Merge override into base in-place, recursing into dicts."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
