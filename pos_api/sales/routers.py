"""
Sales management routers.
"""
from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from pos_api.auth.dependencies import require_admin
from pos_api.common.schemas import DeleteResult
from .constants import SALES_PAGE_SIZE
from .schemas import (
    SaleCreate, SaleUpdate, SaleQuoteRequest, SaleCreateResponse, SaleResponse,
    SalesListResponse, SaleQuoteResponse, SaleDeleteResponse, SaleItemResponse
)
from .services import (
    quote_sale_service,
    create_sale_service,
    list_sales_service,
    get_sale_service,
    update_sale_service,
    delete_sale_service
)

router = APIRouter()


@router.post("/quote", response_model=SaleQuoteResponse)
async def quote_sale(
    quote_request: SaleQuoteRequest,
    user_id: str = Depends(require_admin)
):
    """
    Price draft sale lines without saving them.

    Incomplete lines are priced at 0 and flagged; readyToSave tells the
    client whether the draft may be submitted.
    """
    try:
        result = await quote_sale_service(quote_request.items)
        return SaleQuoteResponse.success(result)
    except HTTPException as e:
        return SaleQuoteResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return SaleQuoteResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("", response_model=SaleCreateResponse)
async def create_sale(
    sale_data: SaleCreate,
    user_id: str = Depends(require_admin)
):
    """
    Create a new sale.

    Requirements:
    - At least one item
    - Every item complete (positive quantity; positive width and height for size-priced products)
    - customerId null for a walk-in sale
    """
    try:
        result = await create_sale_service(sale_data)
        return SaleCreateResponse.success(result)
    except HTTPException as e:
        return SaleCreateResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return SaleCreateResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("", response_model=SalesListResponse)
async def list_sales(
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    size: int = Query(SALES_PAGE_SIZE, ge=1, le=100, description="Number of items per page (1-100)"),
    user_id: str = Depends(require_admin)
):
    """
    Get sales with pagination, newest first.
    """
    try:
        result = await list_sales_service(page, size)
        return SalesListResponse.success(result)
    except HTTPException as e:
        return SalesListResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return SalesListResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/{sale_id}", response_model=SaleResponse)
async def get_sale(
    sale_id: str = Path(..., description="Sale ID"),
    user_id: str = Depends(require_admin)
):
    """
    Get a sale with its customer and items.
    """
    try:
        result = await get_sale_service(sale_id)
        return SaleResponse.success(SaleItemResponse(item=result))
    except HTTPException as e:
        return SaleResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return SaleResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.put("/{sale_id}", response_model=SaleResponse)
async def update_sale(
    sale_data: SaleUpdate,
    sale_id: str = Path(..., description="Sale ID"),
    user_id: str = Depends(require_admin)
):
    """
    Edit a sale. The submitted items replace the existing ones entirely.
    """
    try:
        result = await update_sale_service(sale_id, sale_data)
        return SaleResponse.success(SaleItemResponse(item=result))
    except HTTPException as e:
        return SaleResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return SaleResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.delete("/{sale_id}", response_model=SaleDeleteResponse)
async def delete_sale(
    sale_id: str = Path(..., description="Sale ID"),
    user_id: str = Depends(require_admin)
):
    """
    Delete a sale and its items.
    """
    try:
        message = await delete_sale_service(sale_id)
        return SaleDeleteResponse.success(DeleteResult(message=message))
    except HTTPException as e:
        return SaleDeleteResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return SaleDeleteResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)
