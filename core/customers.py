from __future__ import annotations

from typing import Callable, Dict, Optional

import numpy as np
import pandas as pd


UNKNOWN_CLIENT = "Unknown"
STATUS_NEW = "new"
STATUS_REPEAT = "repeat"
REPEAT_THRESHOLD = 2

STATUS_ALIASES: Dict[str, str] = {
    "new": STATUS_NEW,
    "repeat": STATUS_REPEAT,
    "新客戶": STATUS_NEW,
    "續約客戶": STATUS_REPEAT,
}

VIP_CLIENT_PATTERN = "iherb"
VIP_AGENT_LABEL = "Iherb (獨立客戶)"

AgentOverride = Callable[[str], Optional[str]]


def client_identity(brand_name: object, project_name: object) -> str:
    for value in (brand_name, project_name):
        if isinstance(value, str) and value:
            return value
    return UNKNOWN_CLIENT


def client_ids(df: pd.DataFrame) -> pd.Series:
    """``client_identity`` for each row of the ``brand_name``/``project_name`` columns."""
    ids = [client_identity(b, p) for b, p in zip(df["brand_name"], df["project_name"])]
    return pd.Series(ids, index=df.index, dtype=object)


def count_clients(df: pd.DataFrame) -> Dict[str, int]:
    if df.empty:
        return {}
    counts = client_ids(df).value_counts(sort=False)
    return {str(k): int(v) for k, v in counts.items()}


def classify_customers(df: pd.DataFrame) -> pd.DataFrame:
    """Label every row new/repeat from its client's count over the whole frame.

    Must run on the complete, unfiltered set: a row's status depends on sibling
    rows that a later filter may drop.
    """
    out = df.copy()
    ids = client_ids(out)
    counts = ids.map(ids.value_counts()).fillna(0).astype(int)
    out["client"] = ids
    out["customer_status"] = np.where(counts >= REPEAT_THRESHOLD, STATUS_REPEAT, STATUS_NEW)
    return out


def parse_customer_status(value: object) -> Optional[str]:
    if value is None:
        return None
    return STATUS_ALIASES.get(str(value).strip().lower())


def is_vip_client(client: object) -> bool:
    return VIP_CLIENT_PATTERN in str(client or "").lower()


def vip_agent_override(client: str) -> Optional[str]:
    return VIP_AGENT_LABEL if is_vip_client(client) else None


def display_agent_names(df: pd.DataFrame, override: Optional[AgentOverride] = vip_agent_override) -> pd.Series:
    agents = df["agent_name"].fillna("").astype(str)
    if override is None or df.empty:
        return agents
    replaced = df["client"].map(override)
    return replaced.where(replaced.notna(), agents)
