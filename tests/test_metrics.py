from core.metrics_details import compute_details
from core.metrics_market import compute_market
from core.metrics_overview import compute_overview


def test_overview_payload(make_ctx):
    ctx = make_ctx()
    payload = compute_overview(ctx["filters"], ctx)
    assert payload["has_data"] is True
    assert payload["rate"] == 30.0
    assert payload["kpis"] == {"total_revenue": 11300.0, "transaction_count": 5, "agent_count": 3, "industry_count": 4}
    assert [r["name"] for r in payload["rankings"]["industries"]] == ["Tech", "Retail", "未分類", "Health"]
    assert [r["name"] for r in payload["rankings"]["clients"]] == ["Globex", "Acme", "Initech Site", "iHerb"]
    assert payload["filters"]["limits"]["client_top_n"] == 50


def test_overview_empty_dataset(make_ctx):
    ctx = make_ctx(records=[])
    payload = compute_overview(ctx["filters"], ctx)
    assert payload["has_data"] is False
    assert payload["kpis"]["total_revenue"] == 0.0
    assert payload["rankings"] == {"agents": [], "industries": [], "clients": []}


def test_market_region_view(make_ctx):
    ctx = make_ctx()
    payload = compute_market(ctx["filters"], ctx, view="region")
    local, overseas = payload["summary"]
    assert (local["key"], local["label"]) == ("local", "台灣")
    assert local["revenue"] == 5300.0
    assert overseas["revenue"] == 6000.0
    assert (local["share"], overseas["share"]) == (47, 53)
    # iHerb stays out of the typical deal size.
    assert local["avg_deal"] == 1600.0
    assert len(payload["series"]) == 5
    assert "monthly_trend" in payload["charts"]


def test_market_status_view(make_ctx):
    ctx = make_ctx()
    new, repeat = compute_market(ctx["filters"], ctx, view="status")["summary"]
    assert new["revenue"] == 1300.0
    assert new["avg_deal"] == 800.0
    assert repeat["revenue"] == 10000.0


def test_market_window_follows_limits(make_ctx):
    ctx = make_ctx({"limits": {"month_window": 3}})
    series = compute_market(ctx["filters"], ctx)["series"]
    assert [s["month"] for s in series] == ["2024-02", "2024-03", "2024-04"]


def test_market_empty(make_ctx):
    ctx = make_ctx(records=[])
    payload = compute_market(ctx["filters"], ctx)
    assert payload["series"] == []
    assert payload["charts"] == {}
    assert [s["share"] for s in payload["summary"]] == [0, 0]


def test_details_for_agent(make_ctx):
    ctx = make_ctx()
    payload = compute_details(ctx["filters"], ctx, dimension="agent", value="Alice")
    assert payload["count"] == 2
    assert payload["total"] == 4000.0
    assert [r["date"] for r in payload["rows"]] == ["2024-03-05", "2024-01-15"]


def test_details_labels_and_dimensions(make_ctx):
    ctx = make_ctx()
    rows = compute_details(ctx["filters"], ctx, dimension="client", value="Globex")["rows"]
    assert rows == [
        {
            "date": "2024-02-10",
            "agent": "Bob",
            "brand_name": "Globex",
            "project_name": "Globex Q1",
            "industry": "Tech",
            "customer_status": "repeat",
            "currency": "USD",
            "amount": 200.0,
            "is_foreign": True,
            "final_amount": 6000.0,
        }
    ]
    unclassified = compute_details(ctx["filters"], ctx, dimension="industry", value="未分類")["rows"]
    assert unclassified[0]["currency"] == "臺幣"
    assert compute_details(ctx["filters"], ctx, dimension="status", value="新客戶")["count"] == 2
    assert compute_details(ctx["filters"], ctx)["count"] == 5


def test_details_no_match(make_ctx):
    ctx = make_ctx()
    payload = compute_details(ctx["filters"], ctx, dimension="agent", value="Nobody")
    assert payload["rows"] == []
    assert payload["total"] == 0.0
