"""Currency normalization and NIS conversion.

Rates are fixed approximations (see ``lookups.NIS_RATES``), not a live feed.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Optional

from calendar_engine.domain.meeting import Meeting, Money

from .lookups import CURRENCY_SYMBOLS, NIS_RATES, LookupTables

DEFAULT_CODE = "NIS"

_SYMBOL_TO_CODE = {}
for _code, _symbol in CURRENCY_SYMBOLS.items():
    _SYMBOL_TO_CODE.setdefault(_symbol, _code)


def normalize_currency_code(value: Any) -> Optional[str]:
    """
    Normalize an ISO code or symbol to a currency code.

    "ils" and "₪" both become "NIS". Unknown codes are returned uppercased.
    Blank values return None.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if text in _SYMBOL_TO_CODE:
        return _SYMBOL_TO_CODE[text]
    upper = text.upper()
    if upper == "ILS":
        return DEFAULT_CODE
    return upper


def resolve_currency_code(
    iso_code: Any = None,
    currency_id: Any = None,
    lookups: Optional[LookupTables] = None,
) -> str:
    """
    Resolve a currency code: ISO code first, then numeric id, then NIS.

    Args:
        iso_code: ISO code or symbol, may be blank
        currency_id: Numeric currency id (1 NIS, 2 EUR, 3 USD, 4 GBP by default)
        lookups: Tables carrying dynamic id overrides
    """
    code = normalize_currency_code(iso_code)
    if code:
        return code
    lookups = lookups or LookupTables.seed()
    by_id = lookups.currency_code_for_id(currency_id)
    if by_id:
        return normalize_currency_code(by_id) or DEFAULT_CODE
    return DEFAULT_CODE


def currency_symbol(code: Optional[str]) -> str:
    """Symbol for a code; unknown codes are shown as the code itself."""
    if not code:
        return CURRENCY_SYMBOLS[DEFAULT_CODE]
    return CURRENCY_SYMBOLS.get(code, code)


def canonical_symbol(value: Any, lookups: Optional[LookupTables] = None) -> str:
    """
    Map an ISO code, numeric currency id or symbol to the canonical symbol.

    Canonical symbols map to themselves.
    """
    if value is None:
        return currency_symbol(DEFAULT_CODE)
    if isinstance(value, int) and not isinstance(value, bool):
        return currency_symbol(resolve_currency_code(None, value, lookups))
    text = str(value).strip()
    if text.isdigit():
        return currency_symbol(resolve_currency_code(None, text, lookups))
    return currency_symbol(resolve_currency_code(text, None, lookups))


def parse_amount(value: Any) -> Optional[float]:
    """Parse a numeric amount; accepts thousands separators, "--" and blanks are missing."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    text = str(value).strip()
    if not text or text == "--":
        return None
    try:
        parsed = float(text.replace(",", ""))
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def to_nis(amount: Any, code: Optional[str]) -> float:
    """Convert to NIS. Zero, negative or missing amounts contribute zero."""
    parsed = parse_amount(amount)
    if parsed is None or parsed <= 0:
        return 0.0
    rate = NIS_RATES.get(normalize_currency_code(code) or DEFAULT_CODE, 1.0)
    return parsed * rate


def make_money(
    amount: Any,
    iso_code: Any = None,
    currency_id: Any = None,
    lookups: Optional[LookupTables] = None,
) -> Money:
    parsed = parse_amount(amount) or 0.0
    code = resolve_currency_code(iso_code, currency_id, lookups)
    return Money(amount=parsed, code=code, symbol=currency_symbol(code), nis=to_nis(parsed, code))


def meeting_value(
    lead_balance: Any = None,
    lead_currency: Any = None,
    legacy_total: Any = None,
    legacy_currency_code: Any = None,
    legacy_currency_id: Any = None,
    meeting_amount: Any = None,
    meeting_currency: Any = None,
    lookups: Optional[LookupTables] = None,
) -> Money:
    """
    Pick the value shown for a meeting.

    The lead balance wins when non-zero, then the legacy total, then the
    meeting amount. Falls back to zero NIS.
    """
    balance = parse_amount(lead_balance)
    if balance:
        return make_money(balance, lead_currency, None, lookups)

    total = parse_amount(legacy_total)
    if total:
        return make_money(total, legacy_currency_code, legacy_currency_id, lookups)

    amount = parse_amount(meeting_amount)
    if amount:
        return make_money(amount, meeting_currency or lead_currency, None, lookups)

    return make_money(0, lead_currency, None, lookups)


def total_in_nis(meetings: Iterable[Meeting]) -> float:
    return sum(meeting.value_nis for meeting in meetings)


def format_nis(amount_nis: float, original: Optional[Money] = None) -> str:
    """Format as "₪12,345", optionally followed by the original amount, e.g. "₪3,700 ($1,000)"."""
    text = f"₪{math.ceil(amount_nis):,}"
    if original is not None and original.code != DEFAULT_CODE and original.amount > 0:
        text += f" ({original.symbol}{math.ceil(original.amount):,})"
    return text
