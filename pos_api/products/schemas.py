"""
This module defines the Pydantic models used for product management.
These models are used for request and response validation and serialization.
"""

from typing import Optional

from pydantic import BaseModel, Field

from pos_api.common.schemas import PaginationResponse, JSendResponse, DeleteResult
from pos_api.pricing.schemas import PricingType


class ProductBase(BaseModel):
    """
    Base model for product data that is common to create and response models.
    pricePerUnit and costPrice are per piece for quantity products and per cm² for size products.
    """
    name: str = Field(..., min_length=1)
    pricingType: PricingType
    pricePerUnit: float = Field(..., ge=0, allow_inf_nan=False)
    costPrice: Optional[float] = Field(None, ge=0, allow_inf_nan=False)


class ProductCreate(ProductBase):
    """
    Represents the request data for creating a new product.
    """
    pass


class ProductUpdate(BaseModel):
    """
    Represents the request data for updating an existing product.
    All fields are optional to allow partial updates.
    """
    name: Optional[str] = Field(None, min_length=1)
    pricingType: Optional[PricingType] = None
    pricePerUnit: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    costPrice: Optional[float] = Field(None, ge=0, allow_inf_nan=False)


class ProductInfo(ProductBase):
    """
    Product information returned in responses.
    """
    id: str
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class ProductListData(PaginationResponse[ProductInfo]):
    """
    Represents a paginated list of products.
    """
    pass


class ProductItemResponse(BaseModel):
    """
    Wrapper for single product item response.
    """
    item: ProductInfo


class ProductListResponse(JSendResponse[ProductListData]):
    """Response model for product list operations with pagination."""
    pass


class ProductResponse(JSendResponse[ProductItemResponse]):
    """Response model for single product operations with item wrapper."""
    pass


class ProductCreateResponse(JSendResponse[ProductInfo]):
    """Response model for product creation operations."""
    pass


class ProductDeleteResponse(JSendResponse[DeleteResult]):
    """Response model for product deletion operations."""
    pass
