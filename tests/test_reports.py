"""
Tests for the COGS report and the dashboard summary.
"""
from datetime import datetime, timedelta

import pytest

from pos_api.common.dates import APP_TZ, month_bounds, now_local
from pos_api.reports.schemas import MarginTier
from pos_api.reports.services import build_cogs_report, compute_cogs_row, filter_items_in_range


def _local(*args):
    return APP_TZ.localize(datetime(*args))


def _item(sale_id, created_at, item_total, cost_price, quantity=1, pricing_type="quantity", **extra):
    data = {
        "saleId": sale_id,
        "saleCreatedAt": created_at,
        "customerName": "Walk-in Customer",
        "productName": "Banner",
        "pricingType": pricing_type,
        "quantity": quantity,
        "pricePerUnit": item_total / quantity,
        "costPrice": cost_price,
        "itemTotal": item_total,
    }
    data.update(extra)
    return data


@pytest.fixture
def march_items():
    return [
        ("item-a", _item("sale-a", _local(2025, 3, 5, 10, 0, 0), 100000, 40000)),
        ("item-b", _item("sale-b", _local(2025, 3, 20, 16, 30, 0), 50000, None, quantity=2)),
    ]


class TestCogsRows:

    def test_quantity_row(self):
        row = compute_cogs_row("item-1", _item("sale-1", None, 45000, 9000, quantity=3))

        assert row.unitCost == 9000
        assert row.totalCost == 27000
        assert row.totalRevenue == 45000

    def test_size_row_rounds_cost(self):
        data = _item("sale-1", None, 34000, 1.5, quantity=2, pricing_type="size", width=33, height=21)

        row = compute_cogs_row("item-1", data)

        # 33 x 21 x 1.5 x 2 = 2079, rounded up to 3000
        assert row.totalCost == 3000
        assert row.unitCost == 1500
        assert row.totalRevenue == 34000

    def test_missing_cost_counts_as_zero(self):
        row = compute_cogs_row("item-1", _item("sale-1", None, 50000, None, quantity=2))

        assert row.totalCost == 0
        assert row.unitCost == 0

    def test_unknown_pricing_type_costs_nothing(self):
        row = compute_cogs_row("item-1", _item("sale-1", None, 20000, 5000, pricing_type="area"))

        assert row.pricingType is None
        assert row.totalCost == 0
        assert row.totalRevenue == 20000

    def test_missing_quantity_costs_one_piece(self):
        data = _item("sale-1", None, 15000, 9000)
        data["quantity"] = None

        row = compute_cogs_row("item-1", data)

        assert row.totalCost == 9000
        assert row.unitCost == 9000


class TestBuildCogsReport:

    def test_month_totals(self, march_items):
        report = build_cogs_report(march_items)

        assert report.summary.totalRevenue == 150000
        assert report.summary.totalCOGS == 40000
        assert report.summary.grossProfit == 110000
        assert report.summary.profitMarginPercent == pytest.approx(73.33, abs=0.01)
        assert report.summary.profitMargin == "73.3%"
        assert report.summary.marginTier == MarginTier.STRONG

    def test_rows_newest_first(self, march_items):
        report = build_cogs_report(march_items)

        assert [row.itemId for row in report.rows.items] == ["item-b", "item-a"]

    @pytest.mark.parametrize("count, size, last_page, last_page_rows", [
        (2, 1, 2, 1),
        (25, 10, 3, 5),
    ])
    def test_pagination_does_not_change_totals(self, count, size, last_page, last_page_rows):
        items = [
            (f"item-{n:02d}", _item(f"sale-{n:02d}", _local(2025, 3, 1) + timedelta(hours=n), 1300, 500))
            for n in range(count)
        ]

        first_page = build_cogs_report(items, page=1, size=size)
        last = build_cogs_report(items, page=last_page, size=size)

        assert first_page.summary == last.summary
        assert first_page.summary.totalRevenue == 1300 * count
        assert first_page.summary.totalCOGS == 500 * count
        assert first_page.rows.total == count
        assert first_page.rows.pages == last_page
        assert len(first_page.rows.items) == size
        assert len(last.rows.items) == last_page_rows
        assert first_page.rows.items[0].itemId == f"item-{count - 1:02d}"
        assert last.rows.items[-1].itemId == "item-00"

    def test_unknown_pricing_type_does_not_block_report(self, march_items):
        items = march_items + [("item-x", _item("sale-x", _local(2025, 3, 10), 20000, 5000, pricing_type="area"))]

        report = build_cogs_report(items)

        assert report.summary.totalRevenue == 170000
        assert report.summary.totalCOGS == 40000
        assert report.rows.total == 3

    def test_empty_report(self):
        report = build_cogs_report([])

        assert report.summary.totalRevenue == 0
        assert report.summary.profitMarginPercent == 0
        assert report.summary.marginTier == MarginTier.POOR
        assert report.rows.items == []


def test_filter_items_in_range_is_inclusive(march_items):
    start, end = month_bounds(2025, 3)
    boundary_items = march_items + [
        ("first-second", _item("sale-c", start, 1000, 0)),
        ("last-second", _item("sale-d", end, 1000, 0)),
        ("april", _item("sale-e", end + timedelta(seconds=1), 1000, 0)),
        ("no-date", _item("sale-f", None, 1000, 0)),
    ]

    filtered = filter_items_in_range(boundary_items, start, end)

    assert {item_id for item_id, _ in filtered} == {"item-a", "item-b", "first-second", "last-second"}


def test_filter_without_bounds_keeps_everything(march_items):
    assert filter_items_in_range(march_items, None, None) == march_items


def test_cogs_endpoint(client, collections, make_doc, march_items):
    april_item = _item("sale-z", _local(2025, 4, 1, 8, 0, 0), 999000, 1000)
    collections["sale_items"].stream.return_value = [
        make_doc(item_id, data) for item_id, data in march_items
    ] + [make_doc("item-z", april_item)]

    response = client.get("/reports/cogs?year=2025&month=3")

    assert response.status_code == 200
    response_json = response.json()
    assert response_json["status"] == "success"
    summary = response_json["data"]["summary"]
    assert summary["totalRevenue"] == 150000
    assert summary["totalCOGS"] == 40000
    assert summary["grossProfit"] == 110000
    assert summary["marginTier"] == "strong"
    assert response_json["data"]["rows"]["total"] == 2


def test_cogs_endpoint_month_without_year(client, collections):
    response = client.get("/reports/cogs?month=3")

    assert response.status_code == 200  # JSendResponse always returns 200
    assert response.json()["status"] == "error"
    assert response.json()["code"] == 400


def test_dashboard_endpoint(client, collections, make_doc):
    now = now_local()
    collections["sales"].stream.return_value = [
        make_doc("sale-today", {"customerName": "Budi", "totalPrice": 45000, "itemCount": 1, "createdAt": now}),
        make_doc("sale-old", {"customerName": None, "totalPrice": 99000, "itemCount": 2,
                              "createdAt": now - timedelta(days=3)}),
    ]
    collections["products"].stream.return_value = [make_doc("p1", {}), make_doc("p2", {}), make_doc("p3", {})]
    collections["customers"].stream.return_value = [make_doc("c1", {})]

    response = client.get("/reports/dashboard")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["todayRevenue"] == 45000
    assert data["todaySales"] == 1
    assert data["productCount"] == 3
    assert data["customerCount"] == 1
    assert [sale["id"] for sale in data["recentSales"]] == ["sale-today", "sale-old"]
    assert data["recentSales"][1]["customerName"] == "Walk-in Customer"
