"""
Line-item pricing shared by every flow that produces or reports on a sale
(quote, create, edit, COGS).

Totals:
    quantity-based: quantity * rate
    size-based:     round_to_nearest_thousand(width * height * rate * quantity)

Incomplete input never raises: the line prices to 0 and is flagged incomplete
so callers can refuse to save it.
"""
from decimal import Decimal, ROUND_CEILING
from typing import Optional, Union

from pos_api.pricing.schemas import PricedLine, PricingType

Number = Union[int, float, Decimal]

THOUSAND = Decimal(1000)


def to_decimal(value: Optional[Number]) -> Decimal:
    """Convert through str so float inputs keep the digits that were typed."""
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_to_nearest_thousand(amount: Number) -> Decimal:
    """
    Return `amount` if it is an exact multiple of 1000, otherwise the smallest
    multiple of 1000 strictly greater than it.
    """
    value = to_decimal(amount)
    if value % THOUSAND == 0:
        return value
    return (value / THOUSAND).to_integral_value(rounding=ROUND_CEILING) * THOUSAND


def _is_positive_int(value) -> bool:
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value > 0
    if isinstance(value, (float, Decimal)):
        return _is_finite(value) and value > 0 and value == int(value)
    return False


def _is_finite(value) -> bool:
    try:
        return to_decimal(value).is_finite()
    except (ArithmeticError, ValueError):
        return False


def _is_positive(value) -> bool:
    if value is None or isinstance(value, bool) or not _is_finite(value):
        return False
    return to_decimal(value) > 0


def is_complete(
    pricing_type: Union[PricingType, str],
    quantity: Optional[Number],
    width: Optional[Number] = None,
    height: Optional[Number] = None
) -> bool:
    """
    A line is complete when its quantity is a positive integer and, for
    size-based products, both dimensions are positive. Infinity and NaN
    never count as positive.
    """
    if not _is_positive_int(quantity):
        return False
    if PricingType(pricing_type) == PricingType.SIZE:
        return _is_positive(width) and _is_positive(height)
    return True


def compute_line_total(
    pricing_type: Union[PricingType, str],
    rate: Optional[Number],
    quantity: Optional[Number],
    width: Optional[Number] = None,
    height: Optional[Number] = None
) -> PricedLine:
    """
    Price one line at `rate` (currency per unit, or per cm² for size products).

    Args:
        pricing_type: The product's pricing type
        rate: Selling or cost rate; None is treated as 0, a non-finite rate
            leaves the line incomplete
        quantity: Number of pieces; multiplies both pricing types
        width: Width in cm (size products only)
        height: Height in cm (size products only)

    Returns:
        PricedLine with the persisted itemTotal and the completeness flag
    """
    pricing_type = PricingType(pricing_type)
    if not is_complete(pricing_type, quantity, width, height):
        return PricedLine(complete=False)
    if rate is not None and not _is_finite(rate):
        return PricedLine(complete=False)

    rate_value = to_decimal(rate)
    count = to_decimal(quantity)

    if pricing_type == PricingType.QUANTITY:
        total = count * rate_value
        return PricedLine(rawTotal=float(total), itemTotal=float(total), complete=True)

    area = to_decimal(width) * to_decimal(height)
    raw_total = area * rate_value * count
    return PricedLine(
        area=float(area),
        rawTotal=float(raw_total),
        itemTotal=float(round_to_nearest_thousand(raw_total)),
        complete=True
    )


def compute_item_total(
    pricing_type: Union[PricingType, str],
    price_per_unit: Optional[Number],
    quantity: Optional[Number],
    width: Optional[Number] = None,
    height: Optional[Number] = None
) -> PricedLine:
    """Selling-side total, the value persisted as SaleItem.itemTotal."""
    return compute_line_total(pricing_type, price_per_unit, quantity, width, height)


def resolve_cost_price(cost_price: Optional[Number]) -> Decimal:
    """
    Missing cost data counts as zero cost.

    Reports must always produce a number, so an item without a cost basis
    contributes nothing to COGS instead of failing the report.
    """
    if cost_price is None:
        return Decimal(0)
    return to_decimal(cost_price)


def compute_cost_total(
    pricing_type: Union[PricingType, str],
    cost_price: Optional[Number],
    quantity: Optional[Number],
    width: Optional[Number] = None,
    height: Optional[Number] = None
) -> float:
    """Cost-side total for COGS; same formula as the selling side with costPrice as the rate."""
    rate = resolve_cost_price(cost_price)
    return compute_line_total(pricing_type, rate, quantity, width, height).itemTotal


def display_unit_price(item_total: Optional[Number], quantity: Optional[Number]) -> float:
    """
    Per-unit price shown on invoices and sale details, back-computed from the stored total.

    This is presentation only and is not the product's pricePerUnit: for size
    products it is the rounded line total spread over the pieces. Quantity is
    normalized to at least 1.
    """
    count = to_decimal(quantity) if _is_positive(quantity) else Decimal(1)
    if count < 1:
        count = Decimal(1)
    return float(to_decimal(item_total) / count)
