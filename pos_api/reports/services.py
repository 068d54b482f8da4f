"""
Services for handling reports business logic.

COGS (cost of goods sold) is computed per sale item from the selling and cost
rates snapshotted on the item when the sale was saved. Cost uses the same
formula as the selling side, so size-based cost totals are rounded up to the
next thousand as well. Report totals always cover the whole filtered set;
pagination only decides which rows are returned.
"""
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from fastapi import HTTPException, status
from firebase_admin import firestore

from pos_api.common.dates import day_bounds, in_range, now_local, period_bounds
from pos_api.common.logging import get_logger
from pos_api.common.utils import convert_timestamp, paginate, timestamp_sort_key
from pos_api.customers.services import count_customers
from pos_api.pricing.schemas import PricingType
from pos_api.pricing.services import compute_cost_total, display_unit_price, to_decimal
from pos_api.products.services import count_products
from pos_api.sales.services import load_sales, summarize_sales
from .schemas import CogsReport, CogsRow, CogsRowPage, CogsSummary, DashboardSummary, MarginTier

logger = get_logger(__name__)

# Firebase collections
SALE_ITEMS_COLLECTION = "sale_items"

COGS_PAGE_SIZE = 10
RECENT_SALES_LIMIT = 5

SaleItemDoc = Tuple[str, dict]


def get_firestore_client():
    """Get Firestore client instance."""
    return firestore.client()


def profit_margin_percent(revenue, profit) -> float:
    """Profit as a percentage of revenue; 0 when there is no revenue."""
    revenue_value = to_decimal(revenue)
    if revenue_value == 0:
        return 0.0
    return float(to_decimal(profit) / revenue_value * 100)


def classify_margin(percent: float) -> MarginTier:
    """
    Map a margin percentage to its tier.

    >=50 strong, 30 up to 50 good, 10 up to 30 weak, anything lower
    (including negative margins) poor.
    """
    if percent >= 50:
        return MarginTier.STRONG
    if percent >= 30:
        return MarginTier.GOOD
    if percent >= 10:
        return MarginTier.WEAK
    return MarginTier.POOR


def format_margin(percent: float) -> str:
    return f"{percent:.1f}%"


def filter_items_in_range(
    items: Iterable[SaleItemDoc],
    start: Optional[datetime],
    end: Optional[datetime]
) -> List[SaleItemDoc]:
    """Items whose parent sale was created within [start, end]; no bounds means all items."""
    return [
        (item_id, item_data) for item_id, item_data in items
        if in_range(item_data.get('saleCreatedAt'), start, end)
    ]


def compute_cogs_row(item_id: str, item_data: dict) -> CogsRow:
    """
    Cost and revenue of one sale item.

    A missing costPrice counts as zero cost, and a missing quantity counts as
    one piece on the cost side, so the row always has a number. An item whose
    pricingType is not recognised keeps its revenue and adds no cost.
    """
    quantity = item_data.get('quantity')
    try:
        pricing_type = PricingType(item_data.get('pricingType') or PricingType.QUANTITY.value)
    except ValueError:
        logger.warning(
            "cogs_item_invalid_pricing_type",
            item_id=item_id,
            pricing_type=item_data.get('pricingType')
        )
        pricing_type = None
        total_cost = 0.0
    else:
        total_cost = compute_cost_total(
            pricing_type,
            item_data.get('costPrice'),
            quantity or 1,
            item_data.get('width'),
            item_data.get('height')
        )
    return CogsRow(
        itemId=item_id,
        saleId=item_data.get('saleId', ''),
        saleCreatedAt=convert_timestamp(item_data.get('saleCreatedAt')),
        customerName=item_data.get('customerName'),
        productName=item_data.get('productName', ''),
        pricingType=pricing_type,
        quantity=quantity,
        width=item_data.get('width'),
        height=item_data.get('height'),
        unitCost=display_unit_price(total_cost, quantity),
        totalCost=total_cost,
        totalRevenue=item_data.get('itemTotal', 0) or 0
    )


def summarize_cogs(rows: Iterable[CogsRow]) -> CogsSummary:
    """Totals, gross profit and margin over all given rows."""
    revenue = Decimal(0)
    cost = Decimal(0)
    count = 0
    for row in rows:
        revenue += to_decimal(row.totalRevenue)
        cost += to_decimal(row.totalCost)
        count += 1

    profit = revenue - cost
    margin = profit_margin_percent(revenue, profit)
    return CogsSummary(
        totalRevenue=float(revenue),
        totalCOGS=float(cost),
        grossProfit=float(profit),
        profitMarginPercent=margin,
        profitMargin=format_margin(margin),
        marginTier=classify_margin(margin),
        itemCount=count
    )


def build_cogs_report(
    items: List[SaleItemDoc],
    page: int = 1,
    size: int = COGS_PAGE_SIZE,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> CogsReport:
    """
    Build the report from already filtered items.

    Rows are ordered by the parent sale's creation time, newest first, and the
    summary is computed before pagination.
    """
    ordered = sorted(
        items,
        key=lambda pair: timestamp_sort_key(pair[1].get('saleCreatedAt')),
        reverse=True
    )
    rows = [compute_cogs_row(item_id, item_data) for item_id, item_data in ordered]
    summary = summarize_cogs(rows)

    page_rows, total, pages = paginate(rows, page, size)
    return CogsReport(
        startDate=convert_timestamp(start),
        endDate=convert_timestamp(end),
        summary=summary,
        rows=CogsRowPage(items=page_rows, total=total, page=page, size=size, pages=pages)
    )


async def get_cogs_report_service(
    year: Optional[int] = None,
    month: Optional[int] = None,
    page: int = 1,
    size: int = COGS_PAGE_SIZE
) -> CogsReport:
    """
    COGS report for a month, a year, or all time.

    Raises:
        HTTPException: 400 for a month without a year, 500 if items cannot be read
    """
    start, end = period_bounds(year, month)
    db = get_firestore_client()

    try:
        items = [(doc.id, doc.to_dict() or {}) for doc in db.collection(SALE_ITEMS_COLLECTION).stream()]
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve sale items: {str(e)}"
        )

    filtered = filter_items_in_range(items, start, end)
    logger.debug("cogs_items_filtered", total=len(items), matched=len(filtered), year=year, month=month)
    return build_cogs_report(filtered, page, size, start, end)


async def get_dashboard_service() -> DashboardSummary:
    """Today's revenue and sale count, catalog sizes and the latest sales."""
    db = get_firestore_client()
    now = now_local()
    start, end = day_bounds(now)

    try:
        sales = load_sales(db)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve sales: {str(e)}"
        )

    today = [
        (sale_id, sale_data) for sale_id, sale_data in sales
        if sale_data.get('createdAt') is not None and in_range(sale_data.get('createdAt'), start, end)
    ]
    revenue = sum((to_decimal(sale_data.get('totalPrice')) for _, sale_data in today), Decimal(0))

    return DashboardSummary(
        date=now.isoformat(),
        todayRevenue=float(revenue),
        todaySales=len(today),
        productCount=await count_products(),
        customerCount=await count_customers(),
        recentSales=summarize_sales(sales[:RECENT_SALES_LIMIT])
    )
