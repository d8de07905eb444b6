"""Meeting reconciliation and staff-conflict engine for the case calendar.

Modules:
- config: load and validate engine configuration (YAML or JSON)
- errors: typed results and exceptions shared across the engine
- interfaces: protocols for the store, identity lookup and notifier
- domain: canonical meeting/availability types, SQLAlchemy models, repositories
- services: currency normalizer, lookup tables, session cache, time-window planner
- adapters: current, legacy and staff-calendar source adapters
- engine: reconciler, availability index, conflict evaluator, filter/sort, facade
- io: CSV import/export helpers
- cli: command-line interface entrypoints
"""

__all__ = [
    "config",
    "errors",
    "interfaces",
    "domain",
    "services",
    "adapters",
    "engine",
    "io",
    "cli",
]
