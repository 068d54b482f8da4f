"""
This module defines the Pydantic models used by the pricing engine.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class PricingType(str, Enum):
    """
    How a product is priced.

    QUANTITY: pricePerUnit is a price per piece.
    SIZE: pricePerUnit is a rate per cm² of the printed area.
    """
    QUANTITY = "quantity"
    SIZE = "size"


class PricedLine(BaseModel):
    """
    Result of pricing one line.

    area is only set for size-based lines. rawTotal is the unrounded amount;
    itemTotal is what gets persisted. An incomplete line always prices to 0.
    """
    area: Optional[float] = None
    rawTotal: float = 0
    itemTotal: float = 0
    complete: bool = False
