from __future__ import annotations

import json
import logging
import zipfile
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from core.currency import convert_amounts, derive_region, resolve_rate
from core.customers import AgentOverride, classify_customers, count_clients, display_agent_names, vip_agent_override
from core.filters import DashboardFilters, add_date_parts, apply_filters, normalize_filters
from core.normalize import ALL_FIELDS, Permissions, apply_field_permissions, normalize_records


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
FILE_GLOBS = ("*.csv", "*.xlsx", "*.json")


class UpstreamError(RuntimeError):
    """The sales feed could not be read; carries a message fit for the caller."""


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def get_source_files(data_dir: Optional[Path] = None) -> List[Path]:
    root = Path(data_dir) if data_dir is not None else DATA_DIR
    if not root.is_dir():
        return []
    files = {f for pattern in FILE_GLOBS for f in root.glob(pattern) if not f.name.startswith("~$")}
    return sorted(files)


def file_signature(files: List[Path]) -> Tuple[Tuple[str, float], ...]:
    return tuple((str(f), f.stat().st_mtime) for f in files)


def _records_from_payload(payload: Any, source: str) -> List[Dict[str, Any]]:
    if isinstance(payload, list):
        return [r for r in payload if isinstance(r, dict)]
    if isinstance(payload, dict):
        status = str(payload.get("status", "success")).lower()
        if status != "success":
            raise UpstreamError(payload.get("message") or f"{source}: sales feed reported status {status!r}")
        return _records_from_payload(payload.get("data") or [], source)
    raise UpstreamError(f"{source}: unexpected payload of type {type(payload).__name__}")


def read_raw_records(path: Path) -> List[Dict[str, Any]]:
    path = Path(path)
    suffix = path.suffix.lower()
    try:
        if suffix == ".csv":
            df = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8-sig")
            return df.to_dict(orient="records")
        if suffix == ".xlsx":
            df = pd.read_excel(path, dtype=object)
            return df.to_dict(orient="records")
        if suffix == ".json":
            return _records_from_payload(json.loads(path.read_text(encoding="utf-8")), path.name)
    except UpstreamError:
        raise
    except (OSError, ValueError, zipfile.BadZipFile) as exc:
        logger.warning("could not read sales source %s: %s", path, exc)
        raise UpstreamError(f"Could not read sales data from {path.name}: {exc}") from exc
    raise UpstreamError(f"Unsupported sales source format: {path.name}")


def enrich_transactions(
    df: pd.DataFrame,
    *,
    rate: Optional[float] = None,
    agent_override: Optional[AgentOverride] = vip_agent_override,
) -> pd.DataFrame:
    """Derive amounts, region, customer status and display names for the full set."""
    out = convert_amounts(df, rate)
    if out.empty:
        out["region"] = pd.Series(dtype=object)
    else:
        out["region"] = [derive_region(c, cur) for c, cur in zip(out["country"], out["currency"])]
    out = classify_customers(out)
    out["display_agent_name"] = display_agent_names(out, agent_override)
    return add_date_parts(out)


# ---------------- Public API ----------------
@lru_cache(maxsize=4)
def _load_dashboard_data_cached(files_sig: Tuple[Tuple[str, float], ...]) -> Dict[str, object]:
    records: List[Dict[str, Any]] = []
    for name, _ in files_sig:
        records.extend(read_raw_records(Path(name)))
    transactions = normalize_records(records)
    logger.info("loaded %d sales records from %d source file(s)", len(transactions), len(files_sig))
    return {
        "files": [Path(name).name for name, _ in files_sig],
        "transactions": transactions,
    }


def load_dashboard_data(data_dir: Optional[Path] = None) -> Dict[str, object]:
    files = get_source_files(data_dir)
    if not files:
        return {"files": [], "transactions": normalize_records([])}
    return _load_dashboard_data_cached(file_signature(files))


def data_from_records(records: List[Mapping[str, Any]]) -> Dict[str, object]:
    return {"files": [], "transactions": normalize_records(records)}


def prepare_context(
    filters: dict | DashboardFilters,
    data_ctx: Dict[str, object],
    *,
    rate: Optional[float] = None,
    permissions: Permissions = ALL_FIELDS,
    agent_override: Optional[AgentOverride] = vip_agent_override,
) -> Dict[str, object]:
    base = data_ctx.get("transactions")
    if base is None:
        base = normalize_records([])
    transactions: pd.DataFrame = base.copy()

    filt = filters if isinstance(filters, DashboardFilters) else normalize_filters(filters)
    rate = resolve_rate(rate)

    # Restricted fields are masked before anything is derived from them.
    masked = apply_field_permissions(transactions, permissions)
    enriched = enrich_transactions(masked, rate=rate, agent_override=agent_override)
    filtered = apply_filters(enriched, filt)

    return {
        "filters": filt,
        "rate": rate,
        "has_data": not enriched.empty,
        "transactions": enriched,
        "filtered_transactions": filtered,
        "client_counts": count_clients(enriched),
    }
