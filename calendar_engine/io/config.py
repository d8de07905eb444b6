"""Configuration loading utility (re-exported for the CLI and io helpers)."""

from calendar_engine.config import EngineConfig, config_from_dict, load_config

__all__ = ["load_config", "config_from_dict", "EngineConfig"]
