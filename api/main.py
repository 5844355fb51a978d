from __future__ import annotations

import logging
import math
from typing import Literal, Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response

from api.schemas import DashboardFiltersModel, MetaOptionsResponse
from core.data import UpstreamError, load_dashboard_data, prepare_context
from core.filters import DashboardFilters, available_options, normalize_filters
from core.metrics_details import compute_details
from core.metrics_market import compute_market
from core.metrics_overview import compute_overview


app = FastAPI(title="Sales Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

EXPORT_COLUMNS = [
    "date",
    "display_agent_name",
    "brand_name",
    "project_name",
    "industry",
    "customer_status",
    "region",
    "currency",
    "amount",
    "is_foreign",
    "final_amount",
]


def _filters_from_model(model: Optional[DashboardFiltersModel]) -> DashboardFilters:
    raw = model.model_dump() if model is not None else {}
    return normalize_filters(raw)


def _context(filters: DashboardFilters, rate: Optional[float], permissions: str) -> dict:
    data_ctx = load_dashboard_data()
    return prepare_context(filters, data_ctx, rate=rate, permissions=permissions)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception, where: str) -> JSONResponse:
    if isinstance(exc, UpstreamError):
        logger.warning("%s: sales feed unavailable: %s", where, exc)
        return JSONResponse(status_code=502, content={"error": str(exc), "type": type(exc).__name__})
    logger.exception("%s failed", where)
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/options", response_model=MetaOptionsResponse)
def meta_options(
    rate: Optional[float] = Query(default=None),
    permissions: str = Query(default="all"),
):
    try:
        ctx = _context(DashboardFilters(), rate, permissions)
        return MetaOptionsResponse(**available_options(ctx["transactions"]))
    except Exception as exc:
        return _error(exc, "meta_options")


@app.post("/overview")
def overview(
    filters: Optional[DashboardFiltersModel] = None,
    rate: Optional[float] = Query(default=None),
    permissions: str = Query(default="all"),
):
    try:
        f = _filters_from_model(filters)
        ctx = _context(f, rate, permissions)
        return _json(compute_overview(f, ctx))
    except Exception as exc:
        return _error(exc, "overview")


@app.post("/market")
def market(
    filters: Optional[DashboardFiltersModel] = None,
    view: Literal["region", "status"] = Query(default="region"),
    rate: Optional[float] = Query(default=None),
    permissions: str = Query(default="all"),
):
    try:
        f = _filters_from_model(filters)
        ctx = _context(f, rate, permissions)
        return _json(compute_market(f, ctx, view=view))
    except Exception as exc:
        return _error(exc, "market")


@app.post("/details")
def details(
    filters: Optional[DashboardFiltersModel] = None,
    dimension: Literal["all", "agent", "industry", "client", "status"] = Query(default="all"),
    value: Optional[str] = Query(default=None),
    rate: Optional[float] = Query(default=None),
    permissions: str = Query(default="all"),
):
    try:
        f = _filters_from_model(filters)
        ctx = _context(f, rate, permissions)
        return _json(compute_details(f, ctx, dimension=dimension, value=value))
    except Exception as exc:
        return _error(exc, "details")


@app.post("/export/transactions")
def export_transactions(
    filters: Optional[DashboardFiltersModel] = None,
    rate: Optional[float] = Query(default=None),
    permissions: str = Query(default="all"),
):
    try:
        f = _filters_from_model(filters)
        ctx = _context(f, rate, permissions)
    except Exception as exc:
        return _error(exc, "export_transactions")

    export_df = ctx.get("filtered_transactions")
    if export_df is None or not hasattr(export_df, "to_csv"):
        export_df = pd.DataFrame(columns=EXPORT_COLUMNS)
    export_df = export_df.reindex(columns=EXPORT_COLUMNS)
    csv_bytes = export_df.to_csv(index=False).encode("utf-8-sig")
    return Response(
        content=csv_bytes,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=transactions.csv"},
    )
