from __future__ import annotations

import logging
import math
from typing import Optional, Tuple

import pandas as pd

from core.normalize import canonical_currency, clean_text


logger = logging.getLogger(__name__)

LOCAL_CURRENCY_TOKENS: Tuple[str, ...] = ("TWD", "NT", "臺幣", "台幣")
DEFAULT_CURRENCY_LABEL = "臺幣"

# TWD per 1 USD, used whenever the rate feed gave us nothing usable.
FALLBACK_RATE = 32.5

REGION_LOCAL = "local"
REGION_OVERSEAS = "overseas"

LOCAL_COUNTRY_TOKENS: Tuple[str, ...] = ("taiwan", "台灣", "臺灣", "tw")
OVERSEAS_COUNTRY_TOKENS: Tuple[str, ...] = ("overseas", "海外", "foreign")


def is_local_currency(label: object) -> bool:
    code = canonical_currency(label) or DEFAULT_CURRENCY_LABEL
    return any(token in code for token in LOCAL_CURRENCY_TOKENS)


def resolve_rate(rate: Optional[float]) -> float:
    try:
        value = float(rate) if rate is not None else None
    except (TypeError, ValueError):
        value = None
    if value is None or not math.isfinite(value) or value <= 0:
        if rate is not None:
            logger.warning("ignoring unusable exchange rate %r, using fallback %s", rate, FALLBACK_RATE)
        return FALLBACK_RATE
    return value


def convert_amount(amount: float, currency: object, rate: float) -> Tuple[float, bool]:
    if is_local_currency(currency):
        return float(amount), False
    return float(amount) * rate, True


def convert_amounts(df: pd.DataFrame, rate: Optional[float]) -> pd.DataFrame:
    rate = resolve_rate(rate)
    out = df.copy()
    amount = pd.to_numeric(out["amount"], errors="coerce").fillna(0.0).astype(float)
    converted = [convert_amount(a, c, rate) for a, c in zip(amount, out["currency"])]
    out["is_foreign"] = pd.Series([f for _, f in converted], index=out.index, dtype=bool)
    out["final_amount"] = pd.Series([v for v, _ in converted], index=out.index, dtype=float)
    return out


def derive_region(country: object, currency: object) -> str:
    c = clean_text(country).lower()
    if any(token in c for token in LOCAL_COUNTRY_TOKENS):
        return REGION_LOCAL
    if any(token in c for token in OVERSEAS_COUNTRY_TOKENS):
        return REGION_OVERSEAS
    return REGION_LOCAL if is_local_currency(currency) else REGION_OVERSEAS
