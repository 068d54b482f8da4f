"""
Schemas for the stock watchlist and market quotes.
"""
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from pos_api.common.schemas import JSendResponse, PaginationResponse, DeleteResult


class RecommendationKey(str, Enum):
    STRONG_BUY = "strong_buy"
    BUY = "buy"
    HOLD = "hold"
    SELL = "sell"
    STRONG_SELL = "strong_sell"


class TargetDirection(str, Enum):
    """Where the first take-profit target sits relative to the live price."""
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


class Recommendation(BaseModel):
    """Latest analyst recommendation counts."""
    strongBuy: int = 0
    buy: int = 0
    hold: int = 0
    sell: int = 0
    strongSell: int = 0
    recommendationMean: Optional[float] = None
    recommendationKey: Optional[RecommendationKey] = None


class Quote(BaseModel):
    """Market quote for one ticker."""
    symbol: str
    price: float = 0
    change: float = 0
    changePercent: float = 0
    currency: str = "USD"
    marketState: str = "CLOSED"
    companyName: str = ""
    recommendation: Optional[Recommendation] = None


def _normalize_ticker(value):
    if isinstance(value, str):
        return value.strip().upper()
    return value


class StockBase(BaseModel):
    """
    Watchlist entry fields. Prices are in the ticker's quote currency.
    """
    ticker: str = Field(..., min_length=1)
    companyName: Optional[str] = None
    currentPrice: Optional[float] = Field(None, ge=0)
    support1: Optional[float] = Field(None, ge=0)
    support2: Optional[float] = Field(None, ge=0)
    takeProfit1: Optional[float] = Field(None, ge=0)
    takeProfit2: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None

    @field_validator('ticker', mode='before')
    @classmethod
    def normalize_ticker(cls, v):
        return _normalize_ticker(v)


class StockCreate(StockBase):
    pass


class StockUpdate(BaseModel):
    """
    Partial update of a watchlist entry.
    """
    ticker: Optional[str] = Field(None, min_length=1)
    companyName: Optional[str] = None
    currentPrice: Optional[float] = Field(None, ge=0)
    support1: Optional[float] = Field(None, ge=0)
    support2: Optional[float] = Field(None, ge=0)
    takeProfit1: Optional[float] = Field(None, ge=0)
    takeProfit2: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None

    @field_validator('ticker', mode='before')
    @classmethod
    def normalize_ticker(cls, v):
        return _normalize_ticker(v)


class StockInfo(StockBase):
    """
    Watchlist entry returned in responses, with the live quote when available.
    """
    id: str
    quote: Optional[Quote] = None
    targetDirection: Optional[TargetDirection] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class StockListData(PaginationResponse[StockInfo]):
    pass


class StockItemResponse(BaseModel):
    """
    Wrapper for single watchlist item response.
    """
    item: StockInfo


class QuotesRequest(BaseModel):
    tickers: List[str] = Field(..., min_length=1, max_length=100)


class QuotesData(BaseModel):
    """Quotes keyed by requested ticker; tickers that could not be fetched are absent."""
    prices: Dict[str, Quote]


class StockListResponse(JSendResponse[StockListData]):
    """Response model for watchlist list operations."""
    pass


class StockResponse(JSendResponse[StockItemResponse]):
    """Response model for single watchlist entry operations."""
    pass


class StockDeleteResponse(JSendResponse[DeleteResult]):
    """Response model for watchlist entry deletion."""
    pass


class QuoteResponse(JSendResponse[Quote]):
    """Response model for a single quote."""
    pass


class QuotesResponse(JSendResponse[QuotesData]):
    """Response model for a batch of quotes."""
    pass
