from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import pandas as pd


logger = logging.getLogger(__name__)

REPORTING_TZ = "Asia/Taipei"

# Ordered accessor rules per logical field. First non-blank alias wins.
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "date": ("日期", "Date", "進件日期"),
    "amount": ("金額", "Amount", "總金額"),
    "currency": ("幣別", "Currency"),
    "agent_name": ("業務", "Agent", "業務姓名"),
    "brand_name": ("品牌", "Brand", "品牌名稱"),
    "project_name": ("專案", "Project", "專案名稱"),
    "industry": ("產業", "Industry", "產業分類"),
    "status": ("狀態", "Status", "客戶狀態"),
    "country": ("國家", "Country", "國別"),
}

TEXT_FIELDS = ["agent_name", "brand_name", "project_name", "industry", "status", "country"]
TRANSACTION_COLUMNS = ["date", "amount", "currency", *TEXT_FIELDS]

ALL_FIELDS = "all"
DEFAULT_FIELD_MASKS: Dict[str, Any] = {"amount": 0.0}

_TAG_RE = re.compile(r"<[^>]*>?")
_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_CURRENCY_GLYPHS = "$¥€£￥"

Permissions = Union[str, Iterable[str], None]


def is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if value is pd.NaT or value is pd.NA:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def resolve_field(record: Mapping[str, Any], aliases: Iterable[str]) -> Any:
    for alias in aliases:
        value = record.get(alias)
        if not is_blank(value):
            return value
    return None


def clean_text(value: object) -> str:
    if is_blank(value):
        return ""
    cleaned = _TAG_RE.sub("", str(value))
    cleaned = cleaned.replace("\\n", " ").replace("\r\n", " ").replace("\n", " ")
    return cleaned.strip()


def clean_number(value: object) -> float:
    """Parse a loosely formatted amount like ``"NT$ 1,234.50"``; invalid input yields 0."""
    if is_blank(value) or value is False:
        return 0.0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        out = float(value)
        return out if math.isfinite(out) else 0.0
    s = str(value).replace(",", "")
    s = re.sub(r"\s", "", s)
    s = s.replace("NT$", "").translate({ord(g): None for g in _CURRENCY_GLYPHS})
    match = _NUMBER_RE.match(s)
    if not match:
        return 0.0
    out = float(match.group(0))
    return out if math.isfinite(out) else 0.0


def canonical_currency(value: object) -> str:
    return re.sub(r"\s", "", clean_text(value)).upper()


def parse_date(value: object) -> str:
    if is_blank(value) or isinstance(value, bool):
        return ""
    if isinstance(value, (datetime, date)) and not isinstance(value, pd.Timestamp):
        value = pd.Timestamp(value)
    try:
        ts = pd.to_datetime(value if isinstance(value, pd.Timestamp) else str(value).strip(), errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return ""
    if ts is None or pd.isna(ts):
        return ""
    if ts.tzinfo is not None:
        ts = ts.tz_convert(REPORTING_TZ)
    return ts.strftime("%Y-%m-%d")


def format_date(value: object) -> str:
    if is_blank(value):
        return ""
    s = str(value)
    return s[:10] if len(s) >= 10 else s


def normalize_record(record: Mapping[str, Any]) -> Dict[str, Any]:
    if not isinstance(record, Mapping):
        record = {}
    row: Dict[str, Any] = {
        "date": parse_date(resolve_field(record, FIELD_ALIASES["date"])),
        "amount": clean_number(resolve_field(record, FIELD_ALIASES["amount"])),
        "currency": canonical_currency(resolve_field(record, FIELD_ALIASES["currency"])),
    }
    for name in TEXT_FIELDS:
        row[name] = clean_text(resolve_field(record, FIELD_ALIASES[name]))
    return row


def normalize_records(records: Optional[Iterable[Mapping[str, Any]]]) -> pd.DataFrame:
    rows: List[Dict[str, Any]] = [normalize_record(r) for r in (records or [])]
    df = pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)
    df["amount"] = df["amount"].astype(float)
    for col in ["date", "currency", *TEXT_FIELDS]:
        df[col] = df[col].astype(object)
    undated = int((df["date"] == "").sum()) if not df.empty else 0
    logger.debug("normalized %d records (%d without a usable date)", len(df), undated)
    return df


def _field_token(name: str) -> str:
    return name.strip().lower().replace("_", "")


def allowed_fields(permissions: Permissions) -> Optional[set]:
    """Return the allowed field tokens, or ``None`` when every field is allowed.

    Missing permissions allow nothing, so every maskable field is masked.
    """
    if permissions is None:
        return set()
    if isinstance(permissions, str):
        if permissions.strip().lower() == ALL_FIELDS:
            return None
        names = permissions.split(",")
    else:
        names = [str(p) for p in permissions]
        if any(n.strip().lower() == ALL_FIELDS for n in names):
            return None
    return {_field_token(n) for n in names if n.strip()}


def apply_field_permissions(
    df: pd.DataFrame,
    permissions: Permissions,
    *,
    masks: Optional[Mapping[str, Any]] = None,
) -> pd.DataFrame:
    allowed = allowed_fields(permissions)
    if allowed is None:
        return df
    masks = DEFAULT_FIELD_MASKS if masks is None else masks
    out = df.copy()
    for col, mask_value in masks.items():
        if col in out.columns and _field_token(col) not in allowed:
            out[col] = mask_value
    return out
