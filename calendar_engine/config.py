"""Engine configuration loading (YAML or JSON)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


@dataclass
class WindowPolicy:
    """Cost ceilings applied by the time-window planner."""

    soft_ceiling_days: int = 7
    hard_ceiling_days: int = 14
    cost_sensitive_sources: List[str] = field(default_factory=lambda: ["legacy"])


@dataclass
class BreakerPolicy:
    failure_threshold: int = 1


@dataclass
class SourcePolicy:
    timeout_seconds: float = 20.0
    max_workers: int = 3


@dataclass
class CachePolicy:
    ttl_seconds: float = 300.0


@dataclass
class StaffPolicy:
    email_domain: str = "example.com"
    all_staff_threshold: int = 10


@dataclass
class EngineConfig:
    """Top-level engine configuration."""

    database_url: str = "sqlite:///calendar.db"
    window: WindowPolicy = field(default_factory=WindowPolicy)
    breaker: BreakerPolicy = field(default_factory=BreakerPolicy)
    sources: SourcePolicy = field(default_factory=SourcePolicy)
    cache: CachePolicy = field(default_factory=CachePolicy)
    staff: StaffPolicy = field(default_factory=StaffPolicy)

    def validate(self) -> None:
        """
        Validate value ranges.

        Raises:
            ValueError: If any ceiling, timeout or threshold is out of range
        """
        if self.window.soft_ceiling_days <= 0 or self.window.hard_ceiling_days <= 0:
            raise ValueError("Window ceilings must be positive")
        if self.window.soft_ceiling_days > self.window.hard_ceiling_days:
            raise ValueError(
                f"Soft ceiling ({self.window.soft_ceiling_days}d) exceeds "
                f"hard ceiling ({self.window.hard_ceiling_days}d)"
            )
        if self.breaker.failure_threshold < 1:
            raise ValueError("Breaker failure_threshold must be at least 1")
        if self.sources.timeout_seconds <= 0:
            raise ValueError("Source timeout_seconds must be positive")
        if self.sources.max_workers < 1:
            raise ValueError("Source max_workers must be at least 1")
        if self.cache.ttl_seconds < 0:
            raise ValueError("Cache ttl_seconds must not be negative")
        if self.staff.all_staff_threshold < 1:
            raise ValueError("Staff all_staff_threshold must be at least 1")


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    return value


def config_from_dict(raw: Optional[Dict[str, Any]]) -> EngineConfig:
    """Build an EngineConfig from a parsed mapping, ignoring unknown keys."""
    raw = raw or {}
    window = _section(raw, "window")
    breaker = _section(raw, "breaker")
    sources = _section(raw, "sources")
    cache = _section(raw, "cache")
    staff = _section(raw, "staff")

    defaults = EngineConfig()
    cfg = EngineConfig(
        database_url=str(raw.get("database_url", defaults.database_url)),
        window=WindowPolicy(
            soft_ceiling_days=int(window.get("soft_ceiling_days", defaults.window.soft_ceiling_days)),
            hard_ceiling_days=int(window.get("hard_ceiling_days", defaults.window.hard_ceiling_days)),
            cost_sensitive_sources=[
                str(s).lower()
                for s in window.get("cost_sensitive_sources", defaults.window.cost_sensitive_sources)
            ],
        ),
        breaker=BreakerPolicy(
            failure_threshold=int(breaker.get("failure_threshold", defaults.breaker.failure_threshold)),
        ),
        sources=SourcePolicy(
            timeout_seconds=float(sources.get("timeout_seconds", defaults.sources.timeout_seconds)),
            max_workers=int(sources.get("max_workers", defaults.sources.max_workers)),
        ),
        cache=CachePolicy(
            ttl_seconds=float(cache.get("ttl_seconds", defaults.cache.ttl_seconds)),
        ),
        staff=StaffPolicy(
            email_domain=str(staff.get("email_domain", defaults.staff.email_domain)).lower(),
            all_staff_threshold=int(staff.get("all_staff_threshold", defaults.staff.all_staff_threshold)),
        ),
    )
    cfg.validate()
    return cfg


def load_config(path: str | Path | None = None) -> EngineConfig:
    """
    Load engine configuration from a YAML or JSON file.

    Args:
        path: Path to a .yaml/.yml/.json file. None returns the defaults.

    Returns:
        Validated EngineConfig

    Raises:
        FileNotFoundError: If the path does not exist
        ValueError: If the file content is invalid
    """
    if path is None:
        return config_from_dict({})

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        raw = json.loads(text)
    else:
        raw = yaml.safe_load(text)

    if raw is not None and not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")
    return config_from_dict(raw)
