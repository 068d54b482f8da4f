"""
Stock watchlist routers.

Any signed-in user can read the watchlist and quotes; changing the watchlist
requires an administrator.
"""
from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status

from pos_api.auth.dependencies import get_current_user_id, require_admin
from pos_api.common.schemas import DeleteResult
from .quotes import QuoteRequestGuard, fetch_quotes
from .schemas import (
    StockCreate, StockUpdate, QuotesRequest, QuotesData, StockListResponse, StockResponse,
    StockDeleteResponse, QuoteResponse, QuotesResponse
)
from .services import (
    create_stock_service,
    list_stocks_service,
    get_stock_service,
    update_stock_service,
    delete_stock_service,
    get_quote_service
)

router = APIRouter()


def get_quote_guard(request: Request) -> QuoteRequestGuard:
    """The application's shared quote guard, created on first use."""
    guard = getattr(request.app.state, "quote_guard", None)
    if guard is None:
        guard = QuoteRequestGuard()
        request.app.state.quote_guard = guard
    return guard


@router.get("/quotes", response_model=QuoteResponse)
async def get_quote(
    ticker: str = Query(..., description="Ticker symbol, e.g. AAPL or BBCA.JK"),
    user_id: str = Depends(get_current_user_id),
    guard: QuoteRequestGuard = Depends(get_quote_guard)
):
    """
    Get the live quote and analyst recommendation for one ticker.
    """
    try:
        result = await get_quote_service(ticker, guard)
        return QuoteResponse.success(result)
    except HTTPException as e:
        return QuoteResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return QuoteResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("/quotes", response_model=QuotesResponse)
async def get_quotes(
    quotes_request: QuotesRequest,
    user_id: str = Depends(get_current_user_id),
    guard: QuoteRequestGuard = Depends(get_quote_guard)
):
    """
    Get live quotes for several tickers. Tickers that cannot be fetched are omitted.
    """
    try:
        prices = await fetch_quotes(quotes_request.tickers, guard)
        return QuotesResponse.success(QuotesData(prices=prices))
    except HTTPException as e:
        return QuotesResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return QuotesResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("", response_model=StockListResponse)
async def list_stocks(
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    size: int = Query(10, ge=1, le=100, description="Number of items per page (1-100)"),
    with_quotes: bool = Query(True, alias="withQuotes", description="Attach live quotes"),
    user_id: str = Depends(get_current_user_id),
    guard: QuoteRequestGuard = Depends(get_quote_guard)
):
    """
    Get the watchlist with pagination, newest first.
    """
    try:
        result = await list_stocks_service(page, size, with_quotes, guard)
        return StockListResponse.success(result)
    except HTTPException as e:
        return StockListResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return StockListResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("", response_model=StockResponse)
async def create_stock(
    stock_data: StockCreate,
    user_id: str = Depends(require_admin)
):
    """
    Add a ticker to the watchlist.
    """
    try:
        result = await create_stock_service(stock_data)
        return StockResponse.success(result)
    except HTTPException as e:
        return StockResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return StockResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("/{stock_id}", response_model=StockResponse)
async def get_stock(
    stock_id: str = Path(..., description="Watchlist entry ID"),
    user_id: str = Depends(get_current_user_id),
    guard: QuoteRequestGuard = Depends(get_quote_guard)
):
    """
    Get one watchlist entry with its live quote.
    """
    try:
        result = await get_stock_service(stock_id, guard)
        return StockResponse.success(result)
    except HTTPException as e:
        return StockResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return StockResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.put("/{stock_id}", response_model=StockResponse)
async def update_stock(
    update_data: StockUpdate,
    stock_id: str = Path(..., description="Watchlist entry ID"),
    user_id: str = Depends(require_admin)
):
    """
    Update a watchlist entry's levels or notes.
    """
    try:
        result = await update_stock_service(stock_id, update_data)
        return StockResponse.success(result)
    except HTTPException as e:
        return StockResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return StockResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.delete("/{stock_id}", response_model=StockDeleteResponse)
async def delete_stock(
    stock_id: str = Path(..., description="Watchlist entry ID"),
    user_id: str = Depends(require_admin)
):
    """
    Remove a ticker from the watchlist.
    """
    try:
        message = await delete_stock_service(stock_id)
        return StockDeleteResponse.success(DeleteResult(message=message))
    except HTTPException as e:
        return StockDeleteResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return StockDeleteResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)
