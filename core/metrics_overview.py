from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from core.aggregate import by_agent, by_client, by_industry, by_status, total_revenue
from core.filters import MAX_CLIENT_TOP_N, DashboardFilters
from core.ranking import rank_groups


def compute_overview(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered_transactions", pd.DataFrame())
    total = total_revenue(df)

    agents = rank_groups(by_agent(df))
    industries = rank_groups(by_industry(df, total))
    clients = rank_groups(by_client(df), top_n=min(filters.limits.client_top_n, MAX_CLIENT_TOP_N))
    status_split = by_status(df)

    return {
        "filters": asdict(filters),
        "has_data": bool(ctx.get("has_data", False)),
        "rate": ctx.get("rate"),
        "kpis": {
            "total_revenue": total,
            "transaction_count": int(len(df)),
            "agent_count": int(len(agents)),
            "industry_count": int(len(industries)),
        },
        "status_split": status_split.to_dict(orient="records"),
        "rankings": {
            "agents": agents.to_dict(orient="records"),
            "industries": industries.to_dict(orient="records"),
            "clients": clients.to_dict(orient="records"),
        },
    }
