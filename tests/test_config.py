"""Tests for engine configuration loading."""

import json

import pytest

from calendar_engine.io.config import EngineConfig, config_from_dict, load_config


def test_defaults():
    cfg = load_config()
    assert isinstance(cfg, EngineConfig)
    assert cfg.window.soft_ceiling_days == 7
    assert cfg.window.hard_ceiling_days == 14
    assert cfg.window.cost_sensitive_sources == ["legacy"]
    assert cfg.breaker.failure_threshold == 1
    assert cfg.sources.timeout_seconds == 20.0
    assert cfg.staff.all_staff_threshold == 10


def test_load_yaml(tmp_path):
    """YAML files override only the keys they name."""
    path = tmp_path / "calendar.yaml"
    path.write_text(
        "database_url: sqlite:///tmp.db\n"
        "window:\n"
        "  soft_ceiling_days: 5\n"
        "sources:\n"
        "  timeout_seconds: 2.5\n"
        "staff:\n"
        "  email_domain: Firm.Example\n"
    )
    cfg = load_config(path)
    assert cfg.database_url == "sqlite:///tmp.db"
    assert cfg.window.soft_ceiling_days == 5
    assert cfg.window.hard_ceiling_days == 14
    assert cfg.sources.timeout_seconds == 2.5
    assert cfg.staff.email_domain == "firm.example"


def test_load_json(tmp_path):
    path = tmp_path / "calendar.json"
    path.write_text(json.dumps({"cache": {"ttl_seconds": 0}, "breaker": {"failure_threshold": 3}}))
    cfg = load_config(path)
    assert cfg.cache.ttl_seconds == 0
    assert cfg.breaker.failure_threshold == 3


def test_unknown_keys_ignored():
    cfg = config_from_dict({"window": {"soft_ceiling_days": 3, "colour": "blue"}, "extra": True})
    assert cfg.window.soft_ceiling_days == 3


def test_soft_ceiling_above_hard_rejected():
    with pytest.raises(ValueError, match="exceeds"):
        config_from_dict({"window": {"soft_ceiling_days": 20, "hard_ceiling_days": 14}})


def test_invalid_section_rejected():
    with pytest.raises(ValueError, match="must be a mapping"):
        config_from_dict({"window": [1, 2]})


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")
