from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Literal

import pandas as pd

from core.aggregate import monthly_series, revenue_of
from core.charts import stacked_month_chart
from core.currency import REGION_LOCAL, REGION_OVERSEAS
from core.customers import STATUS_NEW, STATUS_REPEAT, is_vip_client
from core.data import round_half_up
from core.filters import DashboardFilters

View = Literal["region", "status"]

VIEWS = {
    "region": {"column": "region", "keys": (REGION_LOCAL, REGION_OVERSEAS), "labels": ("台灣", "海外")},
    "status": {"column": "customer_status", "keys": (STATUS_NEW, STATUS_REPEAT), "labels": ("新客戶", "續約客戶")},
}


def _segment_summary(df: pd.DataFrame, mask: pd.Series, label: str, key: str) -> Dict[str, Any]:
    seg = df[mask]
    revenue = float(revenue_of(seg).sum()) if not seg.empty else 0.0
    # The VIP account books very large orders; keep it out of the typical deal size.
    regular = seg[~seg["client"].map(is_vip_client).astype(bool)] if not seg.empty else seg
    regular_count = int(len(regular))
    avg_deal = round_half_up(float(revenue_of(regular).sum()) / regular_count) if regular_count else 0.0
    return {
        "key": key,
        "label": label,
        "revenue": revenue,
        "count": int(len(seg)),
        "avg_deal": avg_deal,
    }


def compute_market(filters: DashboardFilters, ctx: Dict[str, Any], *, view: View = "region") -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered_transactions", pd.DataFrame())
    cfg = VIEWS[view]
    keys, labels = cfg["keys"], cfg["labels"]

    series = monthly_series(df, window=filters.limits.month_window)
    if df.empty:
        segments = [{"key": k, "label": label, "revenue": 0.0, "count": 0, "avg_deal": 0.0} for k, label in zip(keys, labels)]
    else:
        column = df[cfg["column"]]
        segments = [_segment_summary(df, column == k, label, k) for k, label in zip(keys, labels)]

    total = sum(s["revenue"] for s in segments)
    for s in segments:
        s["share"] = int(round_half_up(s["revenue"] / total * 100)) if total > 0 else 0

    charts: Dict[str, Any] = {}
    if not series.empty:
        charts["monthly_trend"] = stacked_month_chart(series, keys, labels)

    return {
        "filters": asdict(filters),
        "view": view,
        "series": series.to_dict(orient="records"),
        "summary": segments,
        "charts": charts,
    }
