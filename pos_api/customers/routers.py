"""
Customer management routers with full CRUD operations.
"""

from fastapi import APIRouter, HTTPException, status, Depends, Path, Query

from pos_api.auth.dependencies import require_admin
from pos_api.common.schemas import DeleteResult
from .schemas import (
    CustomerCreate, CustomerUpdate, CustomerCreateResponse, CustomerResponse,
    CustomerListResponse, CustomerDeleteResponse
)
from .services import (
    create_customer_service,
    get_customers_list_service,
    get_customer_service,
    update_customer_service,
    delete_customer_service
)

router = APIRouter()


@router.post("", response_model=CustomerCreateResponse)
async def create_customer(
    customer_data: CustomerCreate,
    user_id: str = Depends(require_admin)
):
    """
    Create a new customer.
    """
    try:
        result = await create_customer_service(customer_data)
        return CustomerCreateResponse.success(result)
    except HTTPException as e:
        return CustomerCreateResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return CustomerCreateResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("", response_model=CustomerListResponse)
async def get_customers_list(
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    size: int = Query(9, ge=1, le=100, description="Number of items per page (1-100)"),
    user_id: str = Depends(require_admin)
):
    """
    Get all customers with pagination.
    """
    try:
        result = await get_customers_list_service(page, size)
        return CustomerListResponse.success(result)
    except HTTPException as e:
        return CustomerListResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return CustomerListResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: str = Path(..., description="Customer ID"),
    user_id: str = Depends(require_admin)
):
    """
    Get a specific customer's information.
    """
    try:
        result = await get_customer_service(customer_id)
        return CustomerResponse.success(result)
    except HTTPException as e:
        return CustomerResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return CustomerResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    update_data: CustomerUpdate,
    customer_id: str = Path(..., description="Customer ID"),
    user_id: str = Depends(require_admin)
):
    """
    Update a customer's information.
    """
    try:
        result = await update_customer_service(customer_id, update_data)
        return CustomerResponse.success(result)
    except HTTPException as e:
        return CustomerResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return CustomerResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.delete("/{customer_id}", response_model=CustomerDeleteResponse)
async def delete_customer(
    customer_id: str = Path(..., description="Customer ID"),
    user_id: str = Depends(require_admin)
):
    """
    Delete a customer.
    """
    try:
        message = await delete_customer_service(customer_id)
        return CustomerDeleteResponse.success(DeleteResult(message=message))
    except HTTPException as e:
        return CustomerDeleteResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return CustomerDeleteResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)
