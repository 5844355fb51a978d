from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd

from core.customers import parse_customer_status


logger = logging.getLogger(__name__)

NO_CONSTRAINT = "All"
MAX_CLIENT_TOP_N = 50


@dataclass(frozen=True)
class Limits:
    client_top_n: int = MAX_CLIENT_TOP_N
    month_window: int = 6


@dataclass(frozen=True)
class DashboardFilters:
    year: Optional[str] = None
    quarter: Optional[int] = None
    month: Optional[int] = None
    status: Optional[str] = None
    agent: Optional[str] = None
    industry: Optional[str] = None
    limits: Limits = field(default_factory=Limits)


def _is_unconstrained(value: object) -> bool:
    if value is None:
        return True
    s = str(value).strip()
    return not s or s == NO_CONSTRAINT


def _as_text(value: object) -> Optional[str]:
    if _is_unconstrained(value):
        return None
    return str(value).strip()


def _as_int_in_range(value: object, low: int, high: int) -> Optional[int]:
    if _is_unconstrained(value):
        return None
    try:
        out = int(str(value).strip())
    except Exception:
        logger.debug("ignoring non-numeric filter value %r", value)
        return None
    if not low <= out <= high:
        logger.debug("ignoring out-of-range filter value %r", value)
        return None
    return out


def _as_positive_int(value: object, default: int, high: Optional[int] = None) -> int:
    try:
        out = int(value)
    except Exception:
        return default
    out = max(1, out)
    return min(high, out) if high is not None else out


def normalize_filters(raw: Optional[Dict[str, Any]]) -> DashboardFilters:
    raw = raw or {}

    year = _as_text(raw.get("year"))
    if year is not None:
        year = year[:4]

    status = None
    if not _is_unconstrained(raw.get("status")):
        status = parse_customer_status(raw.get("status"))

    lim = raw.get("limits") or {}
    limits = Limits(
        client_top_n=_as_positive_int(
            lim.get("client_top_n", MAX_CLIENT_TOP_N), MAX_CLIENT_TOP_N, high=MAX_CLIENT_TOP_N
        ),
        month_window=_as_positive_int(lim.get("month_window", 6), 6),
    )

    return DashboardFilters(
        year=year,
        quarter=_as_int_in_range(raw.get("quarter"), 1, 4),
        month=_as_int_in_range(raw.get("month"), 1, 12),
        status=status,
        agent=_as_text(raw.get("agent")),
        industry=_as_text(raw.get("industry")),
        limits=limits,
    )


def add_date_parts(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    dates = out["date"].fillna("").astype(str)
    out["year"] = dates.str[:4]
    out["month"] = pd.to_numeric(dates.str[5:7], errors="coerce").astype("Int64")
    out["quarter"] = (out["month"] + 2) // 3
    out["month_key"] = dates.str[:7]
    return out


def apply_filters(df: pd.DataFrame, filters: DashboardFilters) -> pd.DataFrame:
    """AND every active predicate; rows without a usable date never pass."""
    if df.empty:
        return df.copy()
    if "month" not in df.columns:
        df = add_date_parts(df)

    mask = df["date"].fillna("").astype(str) != ""
    if filters.year is not None:
        mask &= df["year"] == filters.year
    if filters.quarter is not None:
        mask &= (df["quarter"] == filters.quarter).fillna(False).astype(bool)
    if filters.month is not None:
        mask &= (df["month"] == filters.month).fillna(False).astype(bool)
    if filters.status is not None:
        mask &= df["customer_status"] == filters.status
    if filters.agent is not None:
        mask &= df["display_agent_name"] == filters.agent
    if filters.industry is not None:
        mask &= df["industry"] == filters.industry

    filtered = df[mask]
    logger.debug("filters kept %d of %d transactions", len(filtered), len(df))
    return filtered


def available_options(df: pd.DataFrame) -> Dict[str, Any]:
    def _distinct(col: str) -> List[str]:
        if df.empty or col not in df.columns:
            return []
        values = df[col].fillna("").astype(str)
        return sorted({v for v in values if v})

    years = sorted({d[:4] for d in _distinct("date")}, reverse=True)
    return {
        "years": years,
        "default_year": years[0] if years else None,
        "agents": _distinct("display_agent_name"),
        "statuses": _distinct("customer_status"),
        "industries": _distinct("industry"),
    }
