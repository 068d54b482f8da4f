"""
Product catalog routers with full CRUD operations.
"""

from fastapi import APIRouter, HTTPException, Depends, Path, Query, status

from pos_api.auth.dependencies import require_admin
from .schemas import (
    ProductCreate, ProductUpdate, ProductCreateResponse, ProductResponse,
    ProductListResponse, ProductDeleteResponse
)
from pos_api.common.schemas import DeleteResult
from .services import (
    create_product_service,
    get_products_list_service,
    get_product_service,
    update_product_service,
    delete_product_service
)

router = APIRouter()


@router.get("", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    size: int = Query(10, ge=1, le=100, description="Number of items per page (1-100)"),
    user_id: str = Depends(require_admin)
):
    """
    Get all products with pagination, newest first.
    """
    try:
        result = await get_products_list_service(page, size)
        return ProductListResponse.success(result)
    except HTTPException as e:
        return ProductListResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return ProductListResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("", response_model=ProductCreateResponse)
async def create_product(
    product_data: ProductCreate,
    user_id: str = Depends(require_admin)
):
    """
    Create a new product.
    """
    try:
        result = await create_product_service(product_data)
        return ProductCreateResponse.success(result)
    except HTTPException as e:
        return ProductCreateResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return ProductCreateResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str = Path(..., description="Product ID"),
    user_id: str = Depends(require_admin)
):
    """
    Get a specific product.
    """
    try:
        result = await get_product_service(product_id)
        return ProductResponse.success(result)
    except HTTPException as e:
        return ProductResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return ProductResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    update_data: ProductUpdate,
    product_id: str = Path(..., description="Product ID"),
    user_id: str = Depends(require_admin)
):
    """
    Update a product. The pricing type is frozen once the product has been sold.
    """
    try:
        result = await update_product_service(product_id, update_data)
        return ProductResponse.success(result)
    except HTTPException as e:
        return ProductResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return ProductResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.delete("/{product_id}", response_model=ProductDeleteResponse)
async def delete_product(
    product_id: str = Path(..., description="Product ID"),
    user_id: str = Depends(require_admin)
):
    """
    Delete a product.
    """
    try:
        message = await delete_product_service(product_id)
        return ProductDeleteResponse.success(DeleteResult(message=message))
    except HTTPException as e:
        return ProductDeleteResponse.error(message=str(e.detail), code=e.status_code)
    except Exception as e:
        return ProductDeleteResponse.error(message=str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)
