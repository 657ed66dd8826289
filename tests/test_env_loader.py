# tests/test_env_loader.py
"""
Tests for env.loader.load_environment

Covers:
- the shipped config/ directory loads
- profile / digging profile resolution from a temp config root
- validation errors for bad modes, endpoints and digging settings
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from env.loader import load_environment
from env.schema import DiggingConfig, EnvProfile


def _write_config(root: Path, env_cfg: dict, dig_cfg: dict) -> Path:
    (root / "env.yaml").write_text(yaml.safe_dump(env_cfg), encoding="utf-8")
    (root / "digging.yaml").write_text(yaml.safe_dump(dig_cfg), encoding="utf-8")
    return root


def _env(profile: str = "p", bot_mode: str = "offline_fake", **profile_fields) -> dict:
    return {"profile": profile, "bot_mode": bot_mode, "profiles": {profile: profile_fields}}


def test_shipped_config_loads() -> None:
    env = load_environment()

    assert isinstance(env, EnvProfile)
    assert env.bot_mode in ("forge_mod", "offline_fake")
    assert isinstance(env.digging, DiggingConfig)
    assert env.digging.reach > 0


def test_digging_profile_overrides_defaults(tmp_path: Path) -> None:
    root = _write_config(
        tmp_path,
        _env(digging_profile="slow"),
        {"digging_profiles": {"slow": {"stall_grace_s": 0.6, "reach": 4}}},
    )

    env = load_environment(root)

    assert env.name == "p"
    assert env.bot_mode == "offline_fake"
    assert env.digging.stall_grace_s == pytest.approx(0.6)
    assert env.digging.reach == pytest.approx(4.0)
    # untouched keys keep dataclass defaults
    assert env.digging.tick_s == pytest.approx(0.05)


def test_forge_mod_requires_endpoint(tmp_path: Path) -> None:
    root = _write_config(
        tmp_path,
        _env(bot_mode="forge_mod"),
        {"digging_profiles": {"default": {}}},
    )
    with pytest.raises(ValueError):
        load_environment(root)


def test_forge_mod_endpoint_parsed(tmp_path: Path) -> None:
    root = _write_config(
        tmp_path,
        _env(bot_mode="forge_mod", connection={"host": "10.0.0.2", "port": "25570"}),
        {"digging_profiles": {"default": {}}},
    )
    env = load_environment(root)
    assert env.connection.host == "10.0.0.2"
    assert env.connection.port == 25570


def test_invalid_bot_mode(tmp_path: Path) -> None:
    root = _write_config(tmp_path, _env(bot_mode="telepathy"), {"digging_profiles": {"default": {}}})
    with pytest.raises(ValueError):
        load_environment(root)


def test_missing_profile_and_digging_profile(tmp_path: Path) -> None:
    root = _write_config(
        tmp_path,
        {"profile": "nope", "profiles": {"p": {}}},
        {"digging_profiles": {"default": {}}},
    )
    with pytest.raises(KeyError):
        load_environment(root)

    _write_config(tmp_path, _env(digging_profile="absent"), {"digging_profiles": {"default": {}}})
    with pytest.raises(KeyError):
        load_environment(root)


@pytest.mark.parametrize(
    "settings",
    [
        {"reach": -1},
        {"tick_s": 0},
        {"look_interval_s": "often"},
        {"warp_speed": 9},
    ],
)
def test_bad_digging_settings_rejected(tmp_path: Path, settings: dict) -> None:
    root = _write_config(tmp_path, _env(), {"digging_profiles": {"default": settings}})
    with pytest.raises(ValueError):
        load_environment(root)


def test_missing_file(tmp_path: Path) -> None:
    (tmp_path / "env.yaml").write_text(yaml.safe_dump(_env()), encoding="utf-8")
    with pytest.raises(FileNotFoundError):
        load_environment(tmp_path)
