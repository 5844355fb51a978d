from __future__ import annotations

from typing import List

import pandas as pd

from core.currency import REGION_LOCAL, REGION_OVERSEAS
from core.customers import STATUS_NEW, STATUS_REPEAT
from core.data import round_half_up
from core.filters import add_date_parts


UNKNOWN_AGENT = "Unknown"
UNCLASSIFIED_INDUSTRY = "未分類"

GROUP_COLUMNS = ["name", "revenue", "count"]
SERIES_COLUMNS = ["month", "label", "total", "local", "overseas", "new", "repeat", "count"]


def revenue_of(df: pd.DataFrame) -> pd.Series:
    """``final_amount`` as floats with missing or invalid values counted as 0."""
    if "final_amount" not in df.columns:
        return pd.Series(0.0, index=df.index)
    return pd.to_numeric(df["final_amount"], errors="coerce").fillna(0.0).astype(float)


def total_revenue(df: pd.DataFrame) -> float:
    if df.empty:
        return 0.0
    return float(revenue_of(df).sum())


def _keyed(df: pd.DataFrame, col: str, fallback: str) -> pd.Series:
    return df[col].fillna("").astype(str).replace("", fallback)


def _group(df: pd.DataFrame, keys: pd.Series) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=GROUP_COLUMNS)
    base = pd.DataFrame({"name": keys.to_numpy(), "revenue": revenue_of(df).to_numpy()})
    return (
        base.groupby("name", sort=False, dropna=False)
        .agg(revenue=("revenue", "sum"), count=("revenue", "size"))
        .reset_index()
    )


def _distinct_in_order(values: pd.Series) -> List[str]:
    return list(dict.fromkeys(v for v in values if v))


def by_agent(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=GROUP_COLUMNS + ["projects", "project_count"])
    keys = _keyed(df, "display_agent_name", UNKNOWN_AGENT)
    grouped = _group(df, keys).set_index("name")
    projects = pd.DataFrame(
        {"name": keys.to_numpy(), "project": df["project_name"].fillna("").astype(str).to_numpy()}
    )
    grouped["projects"] = projects.groupby("name", sort=False)["project"].apply(_distinct_in_order)
    grouped["project_count"] = grouped["projects"].map(len)
    return grouped.reset_index()


def by_industry(df: pd.DataFrame, total: float) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=GROUP_COLUMNS + ["share"])
    grouped = _group(df, _keyed(df, "industry", UNCLASSIFIED_INDUSTRY))
    if total > 0:
        grouped["share"] = grouped["revenue"].map(lambda v: round_half_up(v / total * 100, 1))
    else:
        grouped["share"] = 0.0
    return grouped


def by_client(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=GROUP_COLUMNS)
    return _group(df, df["client"].astype(str))


def by_status(df: pd.DataFrame) -> pd.DataFrame:
    order = [STATUS_NEW, STATUS_REPEAT]
    if df.empty:
        return pd.DataFrame({"name": order, "revenue": [0.0, 0.0], "count": [0, 0]})
    grouped = _group(df, df["customer_status"].astype(str)).set_index("name")
    grouped = grouped.reindex(order).fillna({"revenue": 0.0, "count": 0})
    grouped["count"] = grouped["count"].astype(int)
    return grouped.rename_axis("name").reset_index()


def monthly_series(df: pd.DataFrame, window: int = 6) -> pd.DataFrame:
    """Per-month revenue with region and new/repeat splits, last ``window`` months ascending."""
    if df.empty:
        return pd.DataFrame(columns=SERIES_COLUMNS)
    if "month_key" not in df.columns:
        df = add_date_parts(df)
    dated = df[df["month_key"].fillna("").astype(str) != ""]
    if dated.empty:
        return pd.DataFrame(columns=SERIES_COLUMNS)

    rev = revenue_of(dated)
    base = pd.DataFrame(
        {
            "month": dated["month_key"].astype(str),
            "total": rev,
            "local": rev.where(dated["region"] == REGION_LOCAL, 0.0),
            "overseas": rev.where(dated["region"] == REGION_OVERSEAS, 0.0),
            "new": rev.where(dated["customer_status"] == STATUS_NEW, 0.0),
            "repeat": rev.where(dated["customer_status"] == STATUS_REPEAT, 0.0),
            "count": 1,
        }
    )
    # YYYY-MM keys sort chronologically as strings.
    series = base.groupby("month", sort=True).sum().reset_index()
    series = series.tail(max(1, int(window))).reset_index(drop=True)
    series.insert(1, "label", series["month"].map(lambda m: f"{int(m[:4])}年{int(m[5:7])}月"))
    return series[SERIES_COLUMNS]
