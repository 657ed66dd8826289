from __future__ import annotations

import os
from dataclasses import fields
from pathlib import Path
from typing import Dict, Tuple, Any, Optional

import yaml

from .schema import ConnectionConfig, DiggingConfig, EnvProfile


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_ROOT = Path(os.getenv("DIGGING_CONFIG_ROOT", PROJECT_ROOT / "config"))

VALID_BOT_MODES = ("forge_mod", "offline_fake")


def _load_yaml(name: str, config_root: Path) -> Dict[str, Any]:
    """Load a YAML config file from the config/ directory."""
    path = config_root / name
    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at top of {path}, got {type(data)}")
    return data


def _select_profile(env_cfg: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
    """Return (active_profile_name, active_profile_mapping)."""
    profile_name = env_cfg.get("profile")
    if not profile_name:
        raise ValueError("env.yaml must define a 'profile' key.")
    profiles = env_cfg.get("profiles")
    if not isinstance(profiles, dict):
        raise ValueError("env.yaml must define a 'profiles' mapping.")
    if profile_name not in profiles:
        raise KeyError(f"Profile '{profile_name}' not found in env.yaml profiles.")
    return profile_name, profiles[profile_name]


def _build_digging_config(raw: Dict[str, Any]) -> DiggingConfig:
    """Build DiggingConfig, rejecting unknown keys and non-positive values."""
    known = {f.name for f in fields(DiggingConfig)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(f"Unknown digging settings: {sorted(unknown)}")

    values: Dict[str, float] = {}
    for key, value in raw.items():
        try:
            values[key] = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"Digging setting {key!r} must be numeric, got {value!r}")
        if values[key] <= 0:
            raise ValueError(f"Digging setting {key!r} must be positive, got {value!r}")
    return DiggingConfig(**values)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_environment(config_root: Optional[Path] = None) -> EnvProfile:
    """Main entry point: returns a fully resolved EnvProfile."""
    root = Path(config_root) if config_root is not None else CONFIG_ROOT

    env_cfg = _load_yaml("env.yaml", root)
    dig_cfg = _load_yaml("digging.yaml", root)

    active_profile_name, active_profile = _select_profile(env_cfg)

    bot_mode = env_cfg.get("bot_mode", "forge_mod")
    if bot_mode not in VALID_BOT_MODES:
        raise ValueError(f"Invalid bot_mode: {bot_mode}")

    conn_raw = active_profile.get("connection") or {}
    port = conn_raw.get("port")
    connection = ConnectionConfig(
        host=conn_raw.get("host"),
        port=int(port) if port is not None else None,
    )
    if bot_mode == "forge_mod" and (connection.host is None or connection.port is None):
        raise ValueError("forge_mod profiles must define connection.host and connection.port")

    # Resolve digging profile (defaults to "default")
    dig_profile_name = active_profile.get("digging_profile", "default")
    dig_profiles = dig_cfg.get("digging_profiles") or {}
    if dig_profile_name not in dig_profiles:
        raise KeyError(f"Digging profile '{dig_profile_name}' not found in digging.yaml")
    digging = _build_digging_config(dig_profiles[dig_profile_name] or {})

    return EnvProfile(
        name=active_profile_name,
        bot_mode=bot_mode,
        connection=connection,
        digging=digging,
    )
