"""
Schemas for sale operations.
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from pos_api.common.schemas import PaginationResponse, JSendResponse, DeleteResult
from pos_api.pricing.schemas import PricingType


class SaleItemCreate(BaseModel):
    """
    One requested line. quantity multiplies both pricing types; width and
    height (cm) are required for size-priced products only.
    """
    productId: str
    quantity: Optional[int] = 1
    width: Optional[float] = Field(None, allow_inf_nan=False)
    height: Optional[float] = Field(None, allow_inf_nan=False)
    description: Optional[str] = None


class SaleCreate(BaseModel):
    """Request model for creating a sale. A null customerId is a walk-in sale."""
    customerId: Optional[str] = None
    items: List[SaleItemCreate] = Field(default_factory=list)


class SaleUpdate(SaleCreate):
    """Request model for editing a sale; the item set is replaced as a whole."""
    pass


class SaleQuoteRequest(BaseModel):
    """Draft lines to price without saving."""
    items: List[SaleItemCreate] = Field(default_factory=list)


class QuoteLine(BaseModel):
    """Priced draft line."""
    productId: str
    productName: str
    pricingType: PricingType
    pricePerUnit: float
    quantity: Optional[int] = None
    width: Optional[float] = None
    height: Optional[float] = None
    area: Optional[float] = None
    rawTotal: float
    itemTotal: float
    complete: bool


class SaleQuote(BaseModel):
    """Draft totals. readyToSave is false while any line is incomplete or there are no lines."""
    items: List[QuoteLine]
    totalPrice: float
    readyToSave: bool


class CustomerSummary(BaseModel):
    """Basic customer information."""
    id: Optional[str] = None
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class SaleItemInfo(BaseModel):
    """Item in a saved sale."""
    id: str
    saleId: str
    productId: str
    productName: str
    pricingType: PricingType
    quantity: Optional[int] = None
    width: Optional[float] = None
    height: Optional[float] = None
    description: Optional[str] = None
    pricePerUnit: float
    costPrice: Optional[float] = None
    itemTotal: float
    displayUnitPrice: float


class SaleInfo(BaseModel):
    """Sale with its resolved customer and items."""
    id: str
    customerId: Optional[str] = None
    customer: CustomerSummary
    totalPrice: float
    items: List[SaleItemInfo]
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class SaleSummary(BaseModel):
    """Sale summary model for list endpoints."""
    id: str
    customerName: str
    totalPrice: float
    itemCount: int = 0
    createdAt: Optional[str] = None


class SaleItemResponse(BaseModel):
    """
    Wrapper for single sale item response.
    """
    item: SaleInfo


class SalesListData(PaginationResponse[SaleSummary]):
    """
    Represents a paginated list of sales.
    """
    pass


class SaleCreateResponse(JSendResponse[SaleInfo]):
    """Response model for sale creation."""
    pass


class SaleResponse(JSendResponse[SaleItemResponse]):
    """Response model for single sale operations with item wrapper."""
    pass


class SalesListResponse(JSendResponse[SalesListData]):
    """Response model for sale list operations."""
    pass


class SaleQuoteResponse(JSendResponse[SaleQuote]):
    """Response model for draft pricing."""
    pass


class SaleDeleteResponse(JSendResponse[DeleteResult]):
    """Response model for sale deletion."""
    pass
