"""Canonical lookup tables shared by every source adapter.

The hard-coded tables are seeds. Rows from the store's dynamic tables
override them id by id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

NOT_SPECIFIED = "Not specified"

LOCATION_SEED: Dict[int, str] = {
    1: "Teams",
    2: "Tel Aviv Office",
    3: "Jerusalem Office",
    4: "Haifa Office",
    5: "Phone Call",
    6: "Zoom",
    7: "WhatsApp Video",
    8: "Client Site",
}

CURRENCY_ID_SEED: Dict[int, str] = {
    1: "NIS",
    2: "EUR",
    3: "USD",
    4: "GBP",
}

CURRENCY_SYMBOLS: Dict[str, str] = {
    "NIS": "₪",
    "ILS": "₪",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "CAD": "C$",
    "AUD": "A$",
    "JPY": "¥",
}

# Approximate, fixed conversion rates to NIS. Totals are indicative only.
NIS_RATES: Dict[str, float] = {
    "NIS": 1.0,
    "ILS": 1.0,
    "USD": 3.7,
    "EUR": 4.0,
    "GBP": 4.7,
}

_PLACEHOLDER_LOCATIONS = {"", "---", NOT_SPECIFIED.lower()}


@dataclass(frozen=True)
class LookupTables:
    """Location and currency-id tables, seed merged with dynamic overrides."""

    locations: Mapping[int, str] = field(default_factory=lambda: dict(LOCATION_SEED))
    location_links: Mapping[int, str] = field(default_factory=dict)
    currency_ids: Mapping[int, str] = field(default_factory=lambda: dict(CURRENCY_ID_SEED))

    @classmethod
    def seed(cls) -> "LookupTables":
        return cls()

    @classmethod
    def from_rows(
        cls,
        location_rows: Optional[Iterable[Mapping[str, Any]]] = None,
        currency_rows: Optional[Iterable[Mapping[str, Any]]] = None,
    ) -> "LookupTables":
        """
        Build tables from dynamic store rows layered over the seeds.

        Args:
            location_rows: Rows with ``id``, ``name`` and optional ``default_link``
            currency_rows: Rows with ``id`` and ``iso_code``
        """
        locations = dict(LOCATION_SEED)
        links: Dict[int, str] = {}
        for row in location_rows or []:
            if row.get("id") is None or not row.get("name"):
                continue
            locations[int(row["id"])] = str(row["name"]).strip()
            if row.get("default_link"):
                links[int(row["id"])] = str(row["default_link"]).strip()

        currency_ids = dict(CURRENCY_ID_SEED)
        for row in currency_rows or []:
            if row.get("id") is None or not row.get("iso_code"):
                continue
            currency_ids[int(row["id"])] = str(row["iso_code"]).strip().upper()

        return cls(locations=locations, location_links=links, currency_ids=currency_ids)

    def location(self, value: Any, fallback_text: Optional[str] = None) -> Tuple[str, Optional[str]]:
        """
        Resolve a location id or name to (display name, default link).

        Unknown numeric ids fall back to ``fallback_text`` and then to the id itself.
        """
        if value is not None and not isinstance(value, bool):
            text = str(value).strip()
            if text.isdigit():
                location_id = int(text)
                if location_id in self.locations:
                    return self.locations[location_id], self.location_links.get(location_id)
                if fallback_text and fallback_text.strip().lower() not in _PLACEHOLDER_LOCATIONS:
                    return fallback_text.strip(), None
                return text, None
            if text.lower() not in _PLACEHOLDER_LOCATIONS:
                return text, None

        if fallback_text and fallback_text.strip().lower() not in _PLACEHOLDER_LOCATIONS:
            return fallback_text.strip(), None
        return NOT_SPECIFIED, None

    def currency_code_for_id(self, currency_id: Any) -> Optional[str]:
        if currency_id is None or isinstance(currency_id, bool):
            return None
        try:
            return self.currency_ids.get(int(str(currency_id).strip()))
        except ValueError:
            return None
