"""
Schemas for the shop's customer book.

A sale may reference a customer; a sale without one is a walk-in sale.
"""

from typing import Optional, Union
from pydantic import BaseModel, EmailStr, Field, field_validator

from pos_api.common.schemas import JSendResponse, PaginationResponse, DeleteResult


class CustomerContact(BaseModel):
    phone: Optional[str] = None
    address: Optional[str] = None


class CustomerCreate(CustomerContact):
    """
    New customer. Only the name is required; a blank email means none.
    """
    name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None

    @field_validator('email', mode='before')
    @classmethod
    def blank_email_to_none(cls, v):
        return None if v == '' else v


class CustomerUpdate(CustomerContact):
    """
    Partial customer update. Sending email as "" clears the stored address.
    """
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[Union[EmailStr, str]] = None

    @field_validator('email', mode='before')
    @classmethod
    def keep_blank_email(cls, v):
        if v == '':
            return ''
        return v


class CustomerInfo(CustomerContact):
    id: str
    name: str
    email: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class CustomerListData(PaginationResponse[CustomerInfo]):
    pass


class CustomerItemResponse(BaseModel):
    item: CustomerInfo


class CustomerListResponse(JSendResponse[CustomerListData]):
    """Paginated customers."""
    pass


class CustomerResponse(JSendResponse[CustomerItemResponse]):
    """One customer, wrapped in `item`."""
    pass


class CustomerCreateResponse(JSendResponse[CustomerInfo]):
    """The created customer."""
    pass


class CustomerDeleteResponse(JSendResponse[DeleteResult]):
    pass
