"""
Schemas for reports operations.
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from pos_api.common.schemas import JSendResponse, PaginationResponse
from pos_api.pricing.schemas import PricingType
from pos_api.sales.schemas import SaleSummary


class MarginTier(str, Enum):
    """Profit margin bands used to colour the report."""
    STRONG = "strong"
    GOOD = "good"
    WEAK = "weak"
    POOR = "poor"


class CogsRow(BaseModel):
    """Cost of goods sold for one sale item."""
    itemId: str
    saleId: str
    saleCreatedAt: Optional[str] = None
    customerName: Optional[str] = None
    productName: str
    pricingType: Optional[PricingType] = None
    quantity: Optional[int] = None
    width: Optional[float] = None
    height: Optional[float] = None
    unitCost: float = Field(..., description="Cost per piece")
    totalCost: float = Field(..., description="Cost of the whole line")
    totalRevenue: float = Field(..., description="Stored itemTotal of the line")


class CogsSummary(BaseModel):
    """Totals over every item in the selected period."""
    totalRevenue: float
    totalCOGS: float
    grossProfit: float
    profitMarginPercent: float
    profitMargin: str = Field(..., description="Margin with one decimal place, e.g. 73.3%")
    marginTier: MarginTier
    itemCount: int


class CogsRowPage(PaginationResponse[CogsRow]):
    """
    Represents one page of COGS rows.
    """
    pass


class CogsReport(BaseModel):
    """COGS report: period, totals and the requested page of rows."""
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    summary: CogsSummary
    rows: CogsRowPage


class DashboardSummary(BaseModel):
    """Headline numbers for the admin dashboard."""
    date: str = Field(..., description="Local date time")
    todayRevenue: float
    todaySales: int
    productCount: int
    customerCount: int
    recentSales: List[SaleSummary]


class CogsReportResponse(JSendResponse[CogsReport]):
    """Response model for the COGS report."""
    pass


class DashboardResponse(JSendResponse[DashboardSummary]):
    """Response model for the dashboard summary."""
    pass
