"""
Services for handling sales business logic.

A sale's totalPrice is always the sum of its items' itemTotal, computed here
when the sale is created or edited and never re-derived from stored
dimensions afterwards. Editing a sale replaces its whole item set: the old
items are deleted and the new set is inserted.
"""
from typing import Dict, Iterable, List, Optional, Tuple

from fastapi import HTTPException, status
from firebase_admin import firestore

from pos_api.common.dates import now_local
from pos_api.common.logging import get_logger
from pos_api.common.utils import convert_timestamp, paginate, timestamp_sort_key
from pos_api.customers.services import find_customer
from pos_api.pricing.schemas import PricingType
from pos_api.pricing.services import compute_item_total, display_unit_price, to_decimal
from .constants import WALK_IN_CUSTOMER_NAME
from .schemas import (
    CustomerSummary, QuoteLine, SaleCreate, SaleInfo, SaleItemCreate, SaleItemInfo,
    SaleQuote, SaleSummary, SaleUpdate, SalesListData
)

logger = get_logger(__name__)

# Firebase collections
SALES_COLLECTION = "sales"
SALE_ITEMS_COLLECTION = "sale_items"
PRODUCTS_COLLECTION = "products"

# Keys that describe pricing of a draft line but are not stored on the item
_DRAFT_ONLY_KEYS = ("area", "rawTotal", "complete")


def get_firestore_client():
    """Get Firestore client instance."""
    return firestore.client()


def price_sale_items(items: List[SaleItemCreate], products: Dict[str, dict]) -> List[dict]:
    """
    Price every requested line against its product definition.

    Each result carries a snapshot of the product (name, pricing type, selling
    rate and cost rate) so that later reports do not depend on the product
    record staying unchanged.

    Args:
        items: Requested lines
        products: Product documents keyed by product ID; must contain every referenced ID

    Returns:
        List of priced line dicts in request order
    """
    priced = []
    for position, item in enumerate(items):
        product = products[item.productId]
        pricing_type = PricingType(product.get('pricingType'))
        line = compute_item_total(
            pricing_type,
            product.get('pricePerUnit'),
            item.quantity,
            item.width,
            item.height
        )
        size_based = pricing_type == PricingType.SIZE
        priced.append({
            "position": position,
            "productId": item.productId,
            "productName": product.get('name', ''),
            "pricingType": pricing_type.value,
            "quantity": item.quantity,
            "width": item.width if size_based else None,
            "height": item.height if size_based else None,
            "description": item.description or None,
            "pricePerUnit": product.get('pricePerUnit', 0),
            "costPrice": product.get('costPrice'),
            "itemTotal": line.itemTotal,
            "area": line.area,
            "rawTotal": line.rawTotal,
            "complete": line.complete
        })
    return priced


def sum_item_totals(items: Iterable[dict]) -> float:
    """Sale total: the exact sum of the items' itemTotal."""
    total = sum((to_decimal(item.get('itemTotal')) for item in items), to_decimal(0))
    return float(total)


def ensure_ready_to_save(priced: List[dict]) -> None:
    """
    Refuse to save a sale with no items or with any incomplete item.

    Raises:
        HTTPException: 400 describing the first problem found
    """
    if not priced:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please add at least one item to the sale"
        )
    for index, line in enumerate(priced, start=1):
        if not line["complete"]:
            if line["pricingType"] == PricingType.SIZE.value:
                requirement = "a positive quantity, width and height"
            else:
                requirement = "a positive quantity"
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Item {index} ({line['productName']}) is incomplete: it needs {requirement}"
            )


def _load_products(db, product_ids: Iterable[str]) -> Dict[str, dict]:
    products = {}
    for product_id in dict.fromkeys(product_ids):
        product_doc = db.collection(PRODUCTS_COLLECTION).document(product_id).get()
        if not product_doc.exists:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Product with ID {product_id} not found"
            )
        products[product_id] = product_doc.to_dict() or {}
    return products


async def _resolve_customer(customer_id: Optional[str]) -> Tuple[Optional[str], Optional[dict]]:
    if not customer_id:
        return None, None
    customer_data = await find_customer(customer_id)
    if customer_data is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Customer with ID {customer_id} not found"
        )
    return customer_id, customer_data


def _customer_summary(customer_id: Optional[str], customer_data: Optional[dict],
                      fallback_name: Optional[str] = None) -> CustomerSummary:
    if customer_data:
        return CustomerSummary(
            id=customer_id,
            name=customer_data.get('name') or fallback_name or WALK_IN_CUSTOMER_NAME,
            email=customer_data.get('email') or None,
            phone=customer_data.get('phone')
        )
    return CustomerSummary(id=customer_id, name=fallback_name or WALK_IN_CUSTOMER_NAME)


def _insert_items(db, sale_id: str, sale_created_at, customer_name: str,
                  priced: List[dict]) -> List[Tuple[str, dict]]:
    stored = []
    for line in priced:
        item_data = {key: value for key, value in line.items() if key not in _DRAFT_ONLY_KEYS}
        item_data.update({
            "saleId": sale_id,
            "saleCreatedAt": sale_created_at,
            "customerName": customer_name
        })
        item_ref = db.collection(SALE_ITEMS_COLLECTION).document()
        item_ref.set(item_data)
        stored.append((item_ref.id, item_data))
    return stored


def _fetch_items(db, sale_id: str) -> List[Tuple[str, dict]]:
    docs = db.collection(SALE_ITEMS_COLLECTION).where('saleId', '==', sale_id).stream()
    items = [(doc.id, doc.to_dict() or {}) for doc in docs]
    items.sort(key=lambda pair: pair[1].get('position', 0))
    return items


def _delete_items(db, sale_id: str) -> int:
    removed = 0
    for doc in db.collection(SALE_ITEMS_COLLECTION).where('saleId', '==', sale_id).stream():
        doc.reference.delete()
        removed += 1
    return removed


def _to_item_info(item_id: str, item_data: dict) -> SaleItemInfo:
    item_total = item_data.get('itemTotal', 0) or 0
    return SaleItemInfo(
        id=item_id,
        saleId=item_data.get('saleId', ''),
        productId=item_data.get('productId', ''),
        productName=item_data.get('productName', ''),
        pricingType=item_data.get('pricingType', PricingType.QUANTITY.value),
        quantity=item_data.get('quantity'),
        width=item_data.get('width'),
        height=item_data.get('height'),
        description=item_data.get('description'),
        pricePerUnit=item_data.get('pricePerUnit', 0) or 0,
        costPrice=item_data.get('costPrice'),
        itemTotal=item_total,
        displayUnitPrice=display_unit_price(item_total, item_data.get('quantity'))
    )


def _build_sale_info(sale_id: str, sale_data: dict, items: List[Tuple[str, dict]],
                     customer: CustomerSummary) -> SaleInfo:
    return SaleInfo(
        id=sale_id,
        customerId=sale_data.get('customerId'),
        customer=customer,
        totalPrice=sale_data.get('totalPrice', 0),
        items=[_to_item_info(item_id, item_data) for item_id, item_data in items],
        createdAt=convert_timestamp(sale_data.get('createdAt')),
        updatedAt=convert_timestamp(sale_data.get('updatedAt'))
    )


async def quote_sale_service(items: List[SaleItemCreate]) -> SaleQuote:
    """
    Price draft lines without saving anything.

    Returns:
        SaleQuote with per-line totals, the draft total and whether it can be saved
    """
    db = get_firestore_client()
    products = _load_products(db, [item.productId for item in items])
    priced = price_sale_items(items, products)

    lines = [
        QuoteLine(
            productId=line["productId"],
            productName=line["productName"],
            pricingType=line["pricingType"],
            pricePerUnit=line["pricePerUnit"],
            quantity=line["quantity"],
            width=line["width"],
            height=line["height"],
            area=line["area"],
            rawTotal=line["rawTotal"],
            itemTotal=line["itemTotal"],
            complete=line["complete"]
        )
        for line in priced
    ]
    return SaleQuote(
        items=lines,
        totalPrice=sum_item_totals(priced),
        readyToSave=bool(priced) and all(line["complete"] for line in priced)
    )


async def create_sale_service(sale_data: SaleCreate) -> SaleInfo:
    """
    Create a sale and its items.

    Raises:
        HTTPException: 400 for missing products/customers or incomplete items, 500 on write failure
    """
    db = get_firestore_client()
    products = _load_products(db, [item.productId for item in sale_data.items])
    priced = price_sale_items(sale_data.items, products)
    ensure_ready_to_save(priced)

    customer_id, customer_data = await _resolve_customer(sale_data.customerId)
    customer = _customer_summary(customer_id, customer_data)
    total = sum_item_totals(priced)
    now = now_local()

    sale_doc = {
        "customerId": customer_id,
        "customerName": customer.name,
        "totalPrice": total,
        "itemCount": len(priced),
        "createdAt": now,
        "updatedAt": now
    }

    try:
        sale_ref = db.collection(SALES_COLLECTION).document()
        sale_ref.set(sale_doc)
        stored_items = _insert_items(db, sale_ref.id, now, customer.name, priced)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create sale: {str(e)}"
        )

    logger.info("sale_created", sale_id=sale_ref.id, total_price=total, items=len(stored_items))
    return _build_sale_info(sale_ref.id, sale_doc, stored_items, customer)


async def get_sale_service(sale_id: str) -> SaleInfo:
    """
    Get a sale with its customer and items.

    Raises:
        HTTPException: 404 if the sale does not exist
    """
    db = get_firestore_client()
    sale_doc = db.collection(SALES_COLLECTION).document(sale_id).get()

    if not sale_doc.exists:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")

    sale_data = sale_doc.to_dict() or {}
    customer_id = sale_data.get('customerId')
    customer_data = await find_customer(customer_id) if customer_id else None
    customer = _customer_summary(customer_id, customer_data, sale_data.get('customerName'))

    return _build_sale_info(sale_id, sale_data, _fetch_items(db, sale_id), customer)


def _to_sale_summary(sale_id: str, sale_data: dict) -> SaleSummary:
    return SaleSummary(
        id=sale_id,
        customerName=sale_data.get('customerName') or WALK_IN_CUSTOMER_NAME,
        totalPrice=sale_data.get('totalPrice', 0),
        itemCount=sale_data.get('itemCount', 0),
        createdAt=convert_timestamp(sale_data.get('createdAt'))
    )


def load_sales(db) -> List[Tuple[str, dict]]:
    """All sale documents, newest first."""
    sales = [(doc.id, doc.to_dict() or {}) for doc in db.collection(SALES_COLLECTION).stream()]
    sales.sort(key=lambda pair: timestamp_sort_key(pair[1].get('createdAt')), reverse=True)
    return sales


def summarize_sales(sales: List[Tuple[str, dict]]) -> List[SaleSummary]:
    return [_to_sale_summary(sale_id, sale_data) for sale_id, sale_data in sales]


async def list_sales_service(page: int = 1, size: int = 10) -> SalesListData:
    """Get sales with pagination, newest first."""
    db = get_firestore_client()

    try:
        sales = load_sales(db)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve sales: {str(e)}"
        )

    page_items, total, pages = paginate(summarize_sales(sales), page, size)
    return SalesListData(items=page_items, total=total, page=page, size=size, pages=pages)


async def update_sale_service(sale_id: str, sale_data: SaleUpdate) -> SaleInfo:
    """
    Replace a sale's customer and item set, recomputing its total.

    The sale keeps its original creation time; every old item is deleted and the
    new set inserted, so no item survives partially edited.
    """
    db = get_firestore_client()
    sale_ref = db.collection(SALES_COLLECTION).document(sale_id)
    sale_doc = sale_ref.get()

    if not sale_doc.exists:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")

    existing = sale_doc.to_dict() or {}
    products = _load_products(db, [item.productId for item in sale_data.items])
    priced = price_sale_items(sale_data.items, products)
    ensure_ready_to_save(priced)

    customer_id, customer_data = await _resolve_customer(sale_data.customerId)
    customer = _customer_summary(customer_id, customer_data)
    total = sum_item_totals(priced)
    now = now_local()
    created_at = existing.get('createdAt') or now

    update_dict = {
        "customerId": customer_id,
        "customerName": customer.name,
        "totalPrice": total,
        "itemCount": len(priced),
        "updatedAt": now
    }

    try:
        sale_ref.update(update_dict)
        removed = _delete_items(db, sale_id)
        stored_items = _insert_items(db, sale_id, created_at, customer.name, priced)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update sale: {str(e)}"
        )

    logger.info("sale_items_replaced", sale_id=sale_id, removed=removed,
                inserted=len(stored_items), total_price=total)
    existing.update(update_dict)
    return _build_sale_info(sale_id, existing, stored_items, customer)


async def delete_sale_service(sale_id: str) -> str:
    """Delete a sale's items, then the sale."""
    db = get_firestore_client()
    sale_ref = db.collection(SALES_COLLECTION).document(sale_id)
    sale_doc = sale_ref.get()

    if not sale_doc.exists:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")

    try:
        removed = _delete_items(db, sale_id)
        sale_ref.delete()
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete sale: {str(e)}"
        )

    logger.info("sale_deleted", sale_id=sale_id, items_removed=removed)
    return "Sale deleted successfully"
