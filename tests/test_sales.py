"""
Tests for sale pricing, aggregation and the sales endpoints.
"""
from datetime import datetime
from itertools import count
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

from pos_api.common.dates import APP_TZ
from pos_api.sales.schemas import SaleItemCreate
from pos_api.sales.services import ensure_ready_to_save, price_sale_items, sum_item_totals

STICKER = {"name": "Sticker", "pricingType": "quantity", "pricePerUnit": 15000, "costPrice": 5000}
BANNER = {"name": "Banner", "pricingType": "size", "pricePerUnit": 337, "costPrice": 100}


@pytest.fixture
def catalog(collections, make_doc):
    """Products p-sticker and p-banner; any other ID does not exist."""
    products = {"p-sticker": STICKER, "p-banner": BANNER}

    def document(product_id):
        ref = MagicMock()
        if product_id in products:
            ref.get.return_value = make_doc(product_id, dict(products[product_id]))
        else:
            ref.get.return_value = make_doc(product_id, exists=False)
        return ref

    collections["products"].document.side_effect = document
    return products


@pytest.fixture
def item_refs(collections):
    """Sequential IDs for newly inserted sale items."""
    ids = count(1)
    created = []

    def document(*args):
        ref = MagicMock()
        ref.id = f"item-{next(ids)}"
        created.append(ref)
        return ref

    collections["sale_items"].document.side_effect = document
    return created


class TestPriceSaleItems:

    def test_snapshots_product_definition(self):
        items = [
            SaleItemCreate(productId="p-sticker", quantity=3, width=10, height=10),
            SaleItemCreate(productId="p-banner", quantity=1, width=10, height=10, description="Front door"),
        ]

        priced = price_sale_items(items, {"p-sticker": STICKER, "p-banner": BANNER})

        sticker, banner = priced
        assert sticker["itemTotal"] == 45000
        assert sticker["width"] is None and sticker["height"] is None
        assert sticker["costPrice"] == 5000
        assert banner["itemTotal"] == 34000
        assert banner["rawTotal"] == 33700
        assert banner["productName"] == "Banner"
        assert banner["pricePerUnit"] == 337
        assert banner["description"] == "Front door"
        assert [line["position"] for line in priced] == [0, 1]

    def test_incomplete_line_prices_to_zero(self):
        priced = price_sale_items([SaleItemCreate(productId="p-banner", quantity=1, width=100)], {"p-banner": BANNER})

        assert priced[0]["complete"] is False
        assert priced[0]["itemTotal"] == 0


def test_sum_item_totals_is_exact():
    assert sum_item_totals([{"itemTotal": 0.1}, {"itemTotal": 0.2}]) == 0.3
    assert sum_item_totals([]) == 0


def test_ensure_ready_to_save_requires_items():
    with pytest.raises(HTTPException) as exc_info:
        ensure_ready_to_save([])

    assert exc_info.value.status_code == 400


def test_ensure_ready_to_save_rejects_incomplete_lines():
    priced = price_sale_items([SaleItemCreate(productId="p-sticker", quantity=0)], {"p-sticker": STICKER})

    with pytest.raises(HTTPException) as exc_info:
        ensure_ready_to_save(priced)

    assert exc_info.value.status_code == 400
    assert "Item 1 (Sticker) is incomplete" in exc_info.value.detail


def test_quote_sale(client, catalog):
    response = client.post("/sales/quote", json={"items": [
        {"productId": "p-sticker", "quantity": 3},
        {"productId": "p-banner", "quantity": 1, "width": 10},
    ]})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["totalPrice"] == 45000
    assert data["readyToSave"] is False
    assert [line["complete"] for line in data["items"]] == [True, False]


def test_quote_rejects_infinite_dimensions(client, catalog):
    response = client.post(
        "/sales/quote",
        content='{"items": [{"productId": "p-banner", "quantity": 1, "width": Infinity, "height": 2}]}',
        headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 422


def test_non_finite_dimensions_never_reach_rounding():
    priced = price_sale_items(
        [SaleItemCreate.model_construct(productId="p-banner", quantity=1, width=float("inf"), height=2)],
        {"p-banner": BANNER}
    )

    assert priced[0]["complete"] is False
    assert priced[0]["itemTotal"] == 0


def test_quote_empty_draft_is_not_ready(client, catalog):
    response = client.post("/sales/quote", json={"items": []})

    assert response.json()["data"]["readyToSave"] is False


def test_create_walk_in_sale(client, collections, catalog, item_refs):
    collections["sales"].document.return_value.id = "sale-1"

    response = client.post("/sales", json={"customerId": None, "items": [
        {"productId": "p-sticker", "quantity": 3},
        {"productId": "p-banner", "quantity": 3, "width": 10, "height": 10},
    ]})

    assert response.status_code == 200
    response_json = response.json()
    assert response_json["status"] == "success"
    data = response_json["data"]
    assert data["id"] == "sale-1"
    assert data["totalPrice"] == 45000 + 102000
    assert data["customer"]["name"] == "Walk-in Customer"
    assert [item["displayUnitPrice"] for item in data["items"]] == [15000, 34000]

    sale_doc = collections["sales"].document.return_value.set.call_args[0][0]
    assert sale_doc["totalPrice"] == 147000
    assert sale_doc["itemCount"] == 2
    assert sale_doc["customerId"] is None

    assert len(item_refs) == 2
    stored_item = item_refs[1].set.call_args[0][0]
    assert stored_item["saleId"] == "sale-1"
    assert stored_item["saleCreatedAt"] == sale_doc["createdAt"]
    assert stored_item["itemTotal"] == 102000
    assert "complete" not in stored_item


def test_create_sale_with_customer(client, collections, catalog, item_refs, make_doc):
    collections["customers"].document.return_value.get.return_value = make_doc(
        "cust-1", {"name": "Budi", "phone": "0812", "email": "budi@example.com"}
    )
    collections["sales"].document.return_value.id = "sale-2"

    response = client.post("/sales", json={"customerId": "cust-1", "items": [
        {"productId": "p-sticker", "quantity": 1},
    ]})

    data = response.json()["data"]
    assert data["customerId"] == "cust-1"
    assert data["customer"]["name"] == "Budi"
    assert item_refs[0].set.call_args[0][0]["customerName"] == "Budi"


def test_create_sale_rejects_incomplete_item(client, collections, catalog, item_refs):
    response = client.post("/sales", json={"items": [
        {"productId": "p-banner", "quantity": 1, "width": 100},
    ]})

    assert response.json()["status"] == "error"
    assert response.json()["code"] == 400
    collections["sales"].document.return_value.set.assert_not_called()
    assert item_refs == []


def test_create_sale_requires_items(client, collections, catalog):
    response = client.post("/sales", json={"items": []})

    assert response.json()["code"] == 400
    assert "at least one item" in response.json()["message"]


def test_create_sale_unknown_product(client, collections, catalog):
    response = client.post("/sales", json={"items": [{"productId": "missing", "quantity": 1}]})

    assert response.json()["code"] == 400
    assert response.json()["message"] == "Product with ID missing not found"


def test_create_sale_unknown_customer(client, collections, catalog, make_doc):
    collections["customers"].document.return_value.get.return_value = make_doc("ghost", exists=False)

    response = client.post("/sales", json={"customerId": "ghost", "items": [
        {"productId": "p-sticker", "quantity": 1},
    ]})

    assert response.json()["code"] == 400


def test_update_sale_replaces_items(client, collections, catalog, item_refs, make_doc):
    created_at = APP_TZ.localize(datetime(2025, 3, 5, 9, 0, 0))
    sale_ref = collections["sales"].document.return_value
    sale_ref.get.return_value = make_doc("sale-1", {
        "customerId": None, "customerName": "Walk-in Customer", "totalPrice": 45000,
        "itemCount": 1, "createdAt": created_at, "updatedAt": created_at
    })
    old_item = make_doc("old-item", {"saleId": "sale-1", "itemTotal": 45000})
    collections["sale_items"].where.return_value.stream.return_value = [old_item]

    response = client.put("/sales/sale-1", json={"items": [
        {"productId": "p-banner", "quantity": 2, "width": 10, "height": 10},
    ]})

    assert response.json()["status"] == "success"
    data = response.json()["data"]["item"]
    assert data["totalPrice"] == 68000
    assert data["createdAt"] == created_at.isoformat()

    old_item.reference.delete.assert_called_once()
    update_dict = sale_ref.update.call_args[0][0]
    assert update_dict["totalPrice"] == 68000
    assert "createdAt" not in update_dict
    assert item_refs[0].set.call_args[0][0]["saleCreatedAt"] == created_at


def test_update_missing_sale(client, collections, catalog, make_doc):
    collections["sales"].document.return_value.get.return_value = make_doc("nope", exists=False)

    response = client.put("/sales/nope", json={"items": [{"productId": "p-sticker", "quantity": 1}]})

    assert response.json()["code"] == 404


def test_get_sale(client, collections, make_doc):
    collections["sales"].document.return_value.get.return_value = make_doc("sale-1", {
        "customerId": None, "customerName": None, "totalPrice": 102000, "itemCount": 1,
        "createdAt": APP_TZ.localize(datetime(2025, 3, 5, 9, 0, 0))
    })
    collections["sale_items"].where.return_value.stream.return_value = [
        make_doc("item-1", {
            "saleId": "sale-1", "productId": "p-banner", "productName": "Banner", "pricingType": "size",
            "quantity": 3, "width": 10, "height": 10, "pricePerUnit": 337, "costPrice": 100,
            "itemTotal": 102000, "position": 0
        })
    ]

    response = client.get("/sales/sale-1")

    item = response.json()["data"]["item"]
    assert item["customer"]["name"] == "Walk-in Customer"
    assert item["items"][0]["displayUnitPrice"] == 34000


def test_get_sale_not_found(client, collections, make_doc):
    collections["sales"].document.return_value.get.return_value = make_doc("nope", exists=False)

    response = client.get("/sales/nope")

    assert response.status_code == 200  # JSendResponse always returns 200
    assert response.json()["status"] == "error"
    assert response.json()["code"] == 404


def test_list_sales_newest_first(client, collections, make_doc):
    collections["sales"].stream.return_value = [
        make_doc("older", {"customerName": "Budi", "totalPrice": 1000, "itemCount": 1,
                           "createdAt": APP_TZ.localize(datetime(2025, 1, 1, 8, 0, 0))}),
        make_doc("newer", {"customerName": None, "totalPrice": 2000, "itemCount": 2,
                           "createdAt": APP_TZ.localize(datetime(2025, 2, 1, 8, 0, 0))}),
    ]

    response = client.get("/sales?page=1&size=10")

    data = response.json()["data"]
    assert data["total"] == 2
    assert [sale["id"] for sale in data["items"]] == ["newer", "older"]
    assert data["items"][0]["customerName"] == "Walk-in Customer"


def test_delete_sale_removes_items(client, collections, make_doc):
    sale_ref = collections["sales"].document.return_value
    sale_ref.get.return_value = make_doc("sale-1", {"totalPrice": 1000})
    items = [make_doc("item-1", {"saleId": "sale-1"}), make_doc("item-2", {"saleId": "sale-1"})]
    collections["sale_items"].where.return_value.stream.return_value = items

    response = client.delete("/sales/sale-1")

    assert response.json()["data"]["message"] == "Sale deleted successfully"
    for item in items:
        item.reference.delete.assert_called_once()
    sale_ref.delete.assert_called_once()
