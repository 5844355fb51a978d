from __future__ import annotations

from typing import Any, Dict, Tuple

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def stacked_month_chart(series: pd.DataFrame, keys: Tuple[str, str], labels: Tuple[str, str]) -> Dict[str, Any]:
    """Two-segment stacked bar per month, e.g. local vs overseas revenue."""
    long_df = series.melt(id_vars=["month", "label"], value_vars=list(keys), var_name="segment", value_name="revenue")
    long_df["segment"] = long_df["segment"].map(dict(zip(keys, labels)))
    hover = alt.selection_point(fields=["segment"], on="mouseover", empty="all")
    bar = (
        alt.Chart(long_df)
        .mark_bar()
        .encode(
            x=alt.X("label:N", title="Month", sort=list(series["label"]), axis=alt.Axis(grid=False)),
            y=alt.Y("revenue:Q", stack="zero", axis=alt.Axis(format="~s", gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("segment:N", sort=list(labels), title=None),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.6)),
            tooltip=[
                alt.Tooltip("label:N", title="Month"),
                alt.Tooltip("segment:N", title="Segment"),
                alt.Tooltip("revenue:Q", title="Revenue", format=",.0f"),
            ],
        )
        .add_params(hover)
        .properties(height=300)
    )
    return to_vega_spec(bar)
