"""
Tests for customers endpoints.
"""
from datetime import datetime
from unittest.mock import MagicMock

from pos_api.common.dates import APP_TZ


def test_list_customers_newest_first(client, mock_firestore, make_doc):
    """Test listing customers with the default page size."""
    docs = [
        make_doc(f"c{day}", {"name": f"Customer {day}", "createdAt": APP_TZ.localize(datetime(2025, 1, day))})
        for day in range(1, 12)
    ]
    mock_firestore.collection.return_value.stream.return_value = docs

    response = client.get("/customers")

    data = response.json()["data"]
    assert data["size"] == 9
    assert data["total"] == 11
    assert data["pages"] == 2
    assert len(data["items"]) == 9
    assert data["items"][0]["id"] == "c11"


def test_create_customer_blank_email(client, mock_firestore):
    """Test that a blank email is stored as no email."""
    mock_doc_ref = MagicMock()
    mock_doc_ref.id = "new_customer"
    mock_firestore.collection.return_value.document.return_value = mock_doc_ref

    response = client.post("/customers", json={"name": "Budi", "email": "", "phone": "0812"})

    assert response.json()["status"] == "success"
    assert response.json()["data"]["email"] is None
    assert mock_doc_ref.set.call_args[0][0]["phone"] == "0812"


def test_create_customer_invalid_email(client, mock_firestore):
    """Test email validation."""
    response = client.post("/customers", json={"name": "Budi", "email": "not-an-email"})

    assert response.status_code == 422


def test_update_customer_clears_email(client, mock_firestore, make_doc):
    """Test that an empty string clears the email."""
    customer_ref = mock_firestore.collection.return_value.document.return_value
    customer_ref.get.return_value = make_doc("c1", {"name": "Budi", "email": "budi@example.com"})

    response = client.put("/customers/c1", json={"email": ""})

    assert response.json()["status"] == "success"
    assert customer_ref.update.call_args[0][0]["email"] == ""
    assert response.json()["data"]["item"]["email"] is None


def test_get_customer_not_found(client, mock_firestore, make_doc):
    """Test getting a non-existent customer."""
    mock_firestore.collection.return_value.document.return_value.get.return_value = make_doc("c404", exists=False)

    response = client.get("/customers/c404")

    assert response.json()["status"] == "error"
    assert response.json()["code"] == 404


def test_delete_customer(client, mock_firestore, make_doc):
    """Test deleting a customer."""
    customer_ref = mock_firestore.collection.return_value.document.return_value
    customer_ref.get.return_value = make_doc("c1", {"name": "Budi"})

    response = client.delete("/customers/c1")

    assert response.json()["data"]["message"] == "Customer deleted successfully"
    customer_ref.delete.assert_called_once()
