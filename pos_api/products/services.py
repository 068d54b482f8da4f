"""
Product management services for CRUD operations.
"""

from fastapi import HTTPException, status
from firebase_admin import firestore

from pos_api.common.dates import now_local
from pos_api.common.logging import get_logger
from pos_api.common.utils import convert_timestamp, paginate, timestamp_sort_key
from .schemas import (
    ProductCreate, ProductUpdate, ProductInfo, ProductListData, ProductItemResponse
)

logger = get_logger(__name__)

PRODUCTS_COLLECTION = "products"
SALE_ITEMS_COLLECTION = "sale_items"


def get_firestore_client():
    """Get Firestore client instance."""
    return firestore.client()


def _to_product_info(product_id: str, product_data: dict) -> ProductInfo:
    return ProductInfo(
        id=product_id,
        name=product_data.get('name', ''),
        pricingType=product_data.get('pricingType'),
        pricePerUnit=product_data.get('pricePerUnit', 0),
        costPrice=product_data.get('costPrice'),
        createdAt=convert_timestamp(product_data.get('createdAt')),
        updatedAt=convert_timestamp(product_data.get('updatedAt'))
    )


async def create_product_service(product_data: ProductCreate) -> ProductInfo:
    """Create a new product."""
    db = get_firestore_client()
    now = now_local()

    product_doc_data = {
        "name": product_data.name,
        "pricingType": product_data.pricingType.value,
        "pricePerUnit": product_data.pricePerUnit,
        "costPrice": product_data.costPrice,
        "createdAt": now,
        "updatedAt": now
    }

    try:
        doc_ref = db.collection(PRODUCTS_COLLECTION).document()
        doc_ref.set(product_doc_data)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create product: {str(e)}"
        )

    logger.info("product_created", product_id=doc_ref.id, pricing_type=product_data.pricingType.value)
    return _to_product_info(doc_ref.id, product_doc_data)


async def get_products_list_service(page: int = 1, size: int = 10) -> ProductListData:
    """Get all products with pagination, newest first."""
    db = get_firestore_client()

    try:
        docs = list(db.collection(PRODUCTS_COLLECTION).stream())
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve products list: {str(e)}"
        )

    rows = []
    for doc in docs:
        product_data = doc.to_dict()
        if not product_data:
            continue
        rows.append((product_data.get('createdAt'), _to_product_info(doc.id, product_data)))

    # Sort by creation date (newest first); undated documents go last
    rows.sort(key=lambda row: timestamp_sort_key(row[0]), reverse=True)
    products = [info for _, info in rows]

    page_items, total, pages = paginate(products, page, size)
    return ProductListData(items=page_items, total=total, page=page, size=size, pages=pages)


async def get_product_by_id(product_id: str) -> dict:
    """
    Fetch the raw product document.

    Raises:
        HTTPException: 404 if the product does not exist
    """
    db = get_firestore_client()
    product_doc = db.collection(PRODUCTS_COLLECTION).document(product_id).get()

    if not product_doc.exists:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    return product_doc.to_dict() or {}


async def get_product_service(product_id: str) -> ProductItemResponse:
    """Get a specific product."""
    product_data = await get_product_by_id(product_id)
    return ProductItemResponse(item=_to_product_info(product_id, product_data))


def _product_has_sales(db, product_id: str) -> bool:
    referencing = db.collection(SALE_ITEMS_COLLECTION).where('productId', '==', product_id).limit(1).get()
    return len(list(referencing)) > 0


async def update_product_service(product_id: str, update_data: ProductUpdate) -> ProductItemResponse:
    """
    Update a product's information.

    The pricing type of a product that already appears on a sale cannot change,
    otherwise historical totals would no longer match their product definition.
    """
    db = get_firestore_client()
    product_ref = db.collection(PRODUCTS_COLLECTION).document(product_id)
    product_doc = product_ref.get()

    if not product_doc.exists:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    product_data = product_doc.to_dict() or {}

    update_dict = update_data.model_dump(exclude_unset=True)
    if update_dict.get('pricingType') is not None:
        new_type = update_data.pricingType.value
        update_dict['pricingType'] = new_type
        if new_type != product_data.get('pricingType') and _product_has_sales(db, product_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Cannot change the pricing type of a product that has been sold"
            )

    # name, pricingType and pricePerUnit are required on the stored record
    for field in ('name', 'pricingType', 'pricePerUnit'):
        if field in update_dict and update_dict[field] is None:
            del update_dict[field]

    update_dict["updatedAt"] = now_local()

    try:
        product_ref.update(update_dict)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update product: {str(e)}"
        )

    product_data.update(update_dict)
    return ProductItemResponse(item=_to_product_info(product_id, product_data))


async def delete_product_service(product_id: str) -> str:
    """Delete a product."""
    db = get_firestore_client()
    product_ref = db.collection(PRODUCTS_COLLECTION).document(product_id)
    product_doc = product_ref.get()

    if not product_doc.exists:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    try:
        product_ref.delete()
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete product: {str(e)}"
        )

    logger.info("product_deleted", product_id=product_id)
    return "Product deleted successfully"


async def count_products() -> int:
    """Total number of products."""
    db = get_firestore_client()
    return len(list(db.collection(PRODUCTS_COLLECTION).stream()))
