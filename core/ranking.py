from __future__ import annotations

from typing import Optional

import pandas as pd


def rank_groups(groups: pd.DataFrame, *, top_n: Optional[int] = None, by: str = "revenue") -> pd.DataFrame:
    """Sort descending by ``by`` keeping encounter order on ties, then number from 1."""
    if groups.empty:
        out = groups.copy()
        out.insert(0, "rank", pd.Series(dtype=int))
        return out
    ranked = groups.sort_values(by, ascending=False, kind="stable").reset_index(drop=True)
    ranked.insert(0, "rank", range(1, len(ranked) + 1))
    if top_n is not None:
        ranked = ranked.head(max(0, int(top_n)))
    return ranked
