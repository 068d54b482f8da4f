"""
Customer management services for CRUD operations.
"""

from typing import Optional

from fastapi import HTTPException, status
from firebase_admin import firestore

from pos_api.common.dates import now_local
from pos_api.common.logging import get_logger
from pos_api.common.utils import convert_timestamp, paginate, timestamp_sort_key
from .schemas import (
    CustomerCreate, CustomerUpdate, CustomerInfo, CustomerListData, CustomerItemResponse
)

logger = get_logger(__name__)

CUSTOMERS_COLLECTION = "customers"


def get_firestore_client():
    """Get Firestore client instance."""
    return firestore.client()


def _to_customer_info(customer_id: str, customer_data: dict) -> CustomerInfo:
    return CustomerInfo(
        id=customer_id,
        name=customer_data.get('name', ''),
        email=customer_data.get('email') or None,
        phone=customer_data.get('phone'),
        address=customer_data.get('address'),
        createdAt=convert_timestamp(customer_data.get('createdAt')),
        updatedAt=convert_timestamp(customer_data.get('updatedAt'))
    )


async def create_customer_service(customer_data: CustomerCreate) -> CustomerInfo:
    """Create a new customer."""
    db = get_firestore_client()
    now = now_local()

    customer_doc_data = {
        "name": customer_data.name,
        "email": str(customer_data.email) if customer_data.email else "",
        "phone": customer_data.phone,
        "address": customer_data.address,
        "createdAt": now,
        "updatedAt": now
    }

    try:
        doc_ref = db.collection(CUSTOMERS_COLLECTION).document()
        doc_ref.set(customer_doc_data)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create customer: {str(e)}"
        )

    logger.info("customer_created", customer_id=doc_ref.id)
    return _to_customer_info(doc_ref.id, customer_doc_data)


async def get_customers_list_service(page: int = 1, size: int = 9) -> CustomerListData:
    """Get all customers with pagination, newest first."""
    db = get_firestore_client()

    try:
        docs = list(db.collection(CUSTOMERS_COLLECTION).stream())
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve customers list: {str(e)}"
        )

    rows = []
    for doc in docs:
        customer_data = doc.to_dict()
        if not customer_data:
            continue
        rows.append((customer_data.get('createdAt'), _to_customer_info(doc.id, customer_data)))

    rows.sort(key=lambda row: timestamp_sort_key(row[0]), reverse=True)
    customers = [info for _, info in rows]

    page_items, total, pages = paginate(customers, page, size)
    return CustomerListData(items=page_items, total=total, page=page, size=size, pages=pages)


async def find_customer(customer_id: str) -> Optional[dict]:
    """Raw customer document, or None if it does not exist."""
    db = get_firestore_client()
    customer_doc = db.collection(CUSTOMERS_COLLECTION).document(customer_id).get()
    if not customer_doc.exists:
        return None
    return customer_doc.to_dict() or {}


async def get_customer_service(customer_id: str) -> CustomerItemResponse:
    """Get a specific customer."""
    customer_data = await find_customer(customer_id)
    if customer_data is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")

    return CustomerItemResponse(item=_to_customer_info(customer_id, customer_data))


async def update_customer_service(customer_id: str, update_data: CustomerUpdate) -> CustomerItemResponse:
    """Update a customer's information."""
    db = get_firestore_client()
    customer_ref = db.collection(CUSTOMERS_COLLECTION).document(customer_id)
    customer_doc = customer_ref.get()

    if not customer_doc.exists:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")

    customer_data = customer_doc.to_dict() or {}

    # Prepare update data
    update_dict = {"updatedAt": now_local()}

    if update_data.name is not None:
        update_dict["name"] = update_data.name

    # Email may be an empty string to clear the field
    if update_data.email is not None:
        update_dict["email"] = str(update_data.email)

    if update_data.phone is not None:
        update_dict["phone"] = update_data.phone

    if update_data.address is not None:
        update_dict["address"] = update_data.address

    try:
        customer_ref.update(update_dict)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update customer: {str(e)}"
        )

    customer_data.update(update_dict)
    return CustomerItemResponse(item=_to_customer_info(customer_id, customer_data))


async def delete_customer_service(customer_id: str) -> str:
    """
    Delete a customer.

    Existing sales keep their customer snapshot and simply stop resolving to a record.
    """
    db = get_firestore_client()
    customer_ref = db.collection(CUSTOMERS_COLLECTION).document(customer_id)
    customer_doc = customer_ref.get()

    if not customer_doc.exists:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")

    try:
        customer_ref.delete()
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete customer: {str(e)}"
        )

    logger.info("customer_deleted", customer_id=customer_id)
    return "Customer deleted successfully"


async def count_customers() -> int:
    """Total number of customers."""
    db = get_firestore_client()
    return len(list(db.collection(CUSTOMERS_COLLECTION).stream()))
