from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Literal, Optional

import pandas as pd

from core.aggregate import UNCLASSIFIED_INDUSTRY, UNKNOWN_AGENT, revenue_of
from core.currency import DEFAULT_CURRENCY_LABEL
from core.customers import parse_customer_status
from core.filters import DashboardFilters
from core.normalize import format_date

Dimension = Literal["all", "agent", "industry", "client", "status"]

DETAIL_COLUMNS = [
    "date",
    "agent",
    "brand_name",
    "project_name",
    "industry",
    "customer_status",
    "currency",
    "amount",
    "is_foreign",
    "final_amount",
]


def _select(df: pd.DataFrame, dimension: Dimension, value: Optional[str]) -> pd.DataFrame:
    if dimension == "all" or df.empty:
        return df
    if dimension == "agent":
        keys = df["display_agent_name"].fillna("").astype(str).replace("", UNKNOWN_AGENT)
    elif dimension == "industry":
        keys = df["industry"].fillna("").astype(str).replace("", UNCLASSIFIED_INDUSTRY)
    elif dimension == "client":
        keys = df["client"].astype(str)
    elif dimension == "status":
        keys = df["customer_status"].astype(str)
        value = parse_customer_status(value) or value
    else:
        raise ValueError(f"unknown detail dimension: {dimension!r}")
    return df[keys == value]


def compute_details(
    filters: DashboardFilters,
    ctx: Dict[str, Any],
    *,
    dimension: Dimension = "all",
    value: Optional[str] = None,
) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered_transactions", pd.DataFrame())
    rows = _select(df, dimension, value)

    if rows.empty:
        return {"filters": asdict(filters), "dimension": dimension, "value": value, "count": 0, "total": 0.0, "rows": []}

    rows = rows.sort_values("date", ascending=False, kind="stable")
    out = pd.DataFrame(
        {
            "date": rows["date"].map(format_date),
            "agent": rows["display_agent_name"],
            "brand_name": rows["brand_name"],
            "project_name": rows["project_name"],
            "industry": rows["industry"],
            "customer_status": rows["customer_status"],
            "currency": rows["currency"].replace("", DEFAULT_CURRENCY_LABEL),
            "amount": rows["amount"].astype(float),
            "is_foreign": rows["is_foreign"].astype(bool),
            "final_amount": revenue_of(rows),
        }
    )[DETAIL_COLUMNS]

    return {
        "filters": asdict(filters),
        "dimension": dimension,
        "value": value,
        "count": int(len(out)),
        "total": float(out["final_amount"].sum()),
        "rows": out.to_dict(orient="records"),
    }
