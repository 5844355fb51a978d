from core.data import enrich_transactions
from core.filters import DashboardFilters, Limits, apply_filters, available_options, normalize_filters
from core.normalize import normalize_records


def _enriched(records):
    return enrich_transactions(normalize_records(records), rate=30.0)


def test_normalize_filters_sentinels_and_coercion():
    f = normalize_filters(
        {"year": "All", "quarter": "1", "month": "13", "status": "續約客戶", "agent": "  Bob ", "industry": ""}
    )
    assert f == DashboardFilters(year=None, quarter=1, month=None, status="repeat", agent="Bob", industry=None)


def test_normalize_filters_defaults():
    assert normalize_filters(None) == DashboardFilters()
    assert normalize_filters({"year": 2024, "limits": {"client_top_n": "10"}}) == DashboardFilters(
        year="2024", limits=Limits(client_top_n=10)
    )
    assert normalize_filters({"status": "unknown"}).status is None


def test_year_and_quarter_scenario():
    df = _enriched([{"Date": "2024-01-15"}, {"Date": "2024-04-01"}, {"Date": "2023-01-15"}])
    out = apply_filters(df, normalize_filters({"year": "2024", "quarter": "1"}))
    assert out["date"].tolist() == ["2024-01-15"]


def test_no_constraint_is_identity_on_dated_rows(make_ctx):
    ctx = make_ctx()
    dated = ctx["transactions"][ctx["transactions"]["date"] != ""]
    out = apply_filters(dated, DashboardFilters())
    assert out.index.tolist() == dated.index.tolist()
    assert out.equals(dated)


def test_undated_rows_never_pass(make_ctx):
    ctx = make_ctx()
    assert "Dave" not in ctx["filtered_transactions"]["agent_name"].tolist()
    assert len(ctx["filtered_transactions"]) == 5


def test_predicates_are_anded(make_ctx):
    out = make_ctx({"year": "2024", "agent": "Alice", "month": "3"})["filtered_transactions"]
    assert out["date"].tolist() == ["2024-03-05"]

    assert make_ctx({"year": "2024", "agent": "Alice", "month": "2"})["filtered_transactions"].empty


def test_agent_filter_uses_display_name(make_ctx):
    out = make_ctx({"agent": "Iherb (獨立客戶)"})["filtered_transactions"]
    assert out["agent_name"].tolist() == ["Carol"]
    assert make_ctx({"agent": "Carol"})["filtered_transactions"].empty


def test_status_and_industry_filters(make_ctx):
    new = make_ctx({"status": "new"})["filtered_transactions"]
    assert new["client"].tolist() == ["iHerb", "Initech Site"]

    retail = make_ctx({"industry": "Retail"})["filtered_transactions"]
    assert retail["date"].tolist() == ["2024-01-15", "2024-03-05"]


def test_filtering_never_changes_classification(make_ctx):
    full = make_ctx()["transactions"].set_index("date")["customer_status"]
    for raw in ({"agent": "Bob"}, {"year": "2024", "quarter": "1"}, {"industry": "Tech"}):
        filtered = make_ctx(raw)["filtered_transactions"]
        for _, row in filtered.iterrows():
            assert row["customer_status"] == full[row["date"]]
    # Globex is repeat only because of its dateless sibling row.
    bob = make_ctx({"agent": "Bob", "year": "2024"})["filtered_transactions"]
    assert bob["customer_status"].tolist() == ["repeat"]


def test_available_options(make_ctx):
    opts = available_options(make_ctx()["transactions"])
    assert opts["years"] == ["2024", "2023"]
    assert opts["default_year"] == "2024"
    assert opts["agents"] == sorted(["Alice", "Bob", "Dave", "Iherb (獨立客戶)"])
    assert opts["statuses"] == ["new", "repeat"]
    assert opts["industries"] == ["Health", "Retail", "Tech"]


def test_available_options_empty():
    opts = available_options(_enriched([]))
    assert opts == {"years": [], "default_year": None, "agents": [], "statuses": [], "industries": []}
