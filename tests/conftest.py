"""Shared fixtures for the sales dashboard tests.

``raw_records`` deliberately mixes the three column-label variants, a foreign
currency row, a VIP client row and a row without a usable date so most tests
can run against the same small feed.
"""

from __future__ import annotations

from typing import Any, Dict, List

import pytest

from core.data import data_from_records, prepare_context


@pytest.fixture
def raw_records() -> List[Dict[str, Any]]:
    return [
        {"日期": "2024-01-15", "金額": "1,000", "幣別": "TWD", "業務": "Alice", "品牌": "Acme", "專案": "Acme Launch", "產業": "Retail", "國家": "台灣"},
        {"Date": "2024-02-10", "Amount": 200, "Currency": "usd", "Agent": "Bob", "Brand": "Globex", "Project": "Globex Q1", "Industry": "Tech", "Country": "USA"},
        {"進件日期": "2024-03-05", "總金額": "3,000", "幣別": "NT$", "業務姓名": "Alice", "品牌名稱": "Acme", "專案名稱": "Acme Refresh", "產業分類": "Retail"},
        {"日期": "2024-04-01", "金額": "500", "幣別": "台幣", "業務": "Carol", "品牌": "iHerb", "專案": "iHerb Promo", "產業": "Health", "國家": "Taiwan"},
        {"日期": "2023-11-20", "金額": "800", "業務": "Bob", "專案": "Initech Site", "產業": ""},
        {"日期": "not a date", "金額": "999", "業務": "Dave", "品牌": "Globex"},
    ]


@pytest.fixture
def make_ctx(raw_records):
    def _make(filters=None, *, records=None, rate=30.0, permissions="all"):
        data_ctx = data_from_records(raw_records if records is None else records)
        return prepare_context(filters or {}, data_ctx, rate=rate, permissions=permissions)

    return _make
