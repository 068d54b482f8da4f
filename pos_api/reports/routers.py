"""
Reports management routers.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from pos_api.auth.dependencies import require_admin
from .schemas import CogsReportResponse, DashboardResponse
from .services import COGS_PAGE_SIZE, get_cogs_report_service, get_dashboard_service

router = APIRouter()


@router.get("/cogs", response_model=CogsReportResponse)
async def get_cogs_report(
    year: Optional[int] = Query(None, ge=1900, le=9999, description="Calendar year to report on"),
    month: Optional[int] = Query(None, description="Month 1-12; requires year"),
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    size: int = Query(COGS_PAGE_SIZE, ge=1, le=100, description="Number of rows per page (1-100)"),
    user_id: str = Depends(require_admin)
):
    """
    Get the cost of goods sold report.

    Without filters the report covers every sale item. With a year it covers
    that calendar year; with a year and a month, that month. Totals always
    cover the whole period regardless of the requested page.

    Returns:
        JSendResponse containing the period, summary totals, margin tier and a page of rows
    """
    try:
        result = await get_cogs_report_service(year, month, page, size)
        return CogsReportResponse.success(result)
    except HTTPException as e:
        return CogsReportResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return CogsReportResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(user_id: str = Depends(require_admin)):
    """
    Get today's revenue and sale count, product and customer counts and the latest sales.
    """
    try:
        result = await get_dashboard_service()
        return DashboardResponse.success(result)
    except HTTPException as e:
        return DashboardResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return DashboardResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)
