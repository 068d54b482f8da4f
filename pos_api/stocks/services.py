"""
Stock watchlist services.
"""
from typing import Dict, Optional

from fastapi import HTTPException, status
from firebase_admin import firestore

from pos_api.common.dates import now_local
from pos_api.common.logging import get_logger
from pos_api.common.utils import convert_timestamp, paginate, timestamp_sort_key
from .quotes import QuoteRequestGuard, fetch_quotes
from .schemas import Quote, StockCreate, StockInfo, StockItemResponse, StockListData, StockUpdate, TargetDirection

logger = get_logger(__name__)

STOCKS_COLLECTION = "stocks"


def get_firestore_client():
    """Get Firestore client instance."""
    return firestore.client()


def target_direction(take_profit: Optional[float], price: Optional[float]) -> Optional[TargetDirection]:
    """Whether the take-profit target is above, below or at the price; None without both."""
    if take_profit is None or not price:
        return None
    if take_profit > price:
        return TargetDirection.UP
    if take_profit < price:
        return TargetDirection.DOWN
    return TargetDirection.FLAT


def _to_stock_info(stock_id: str, stock_data: dict, quote: Optional[Quote] = None) -> StockInfo:
    price = quote.price if quote and quote.price else stock_data.get('currentPrice')
    return StockInfo(
        id=stock_id,
        ticker=stock_data.get('ticker', ''),
        companyName=stock_data.get('companyName') or (quote.companyName if quote else None) or None,
        currentPrice=stock_data.get('currentPrice'),
        support1=stock_data.get('support1'),
        support2=stock_data.get('support2'),
        takeProfit1=stock_data.get('takeProfit1'),
        takeProfit2=stock_data.get('takeProfit2'),
        notes=stock_data.get('notes'),
        quote=quote,
        targetDirection=target_direction(stock_data.get('takeProfit1'), price),
        createdAt=convert_timestamp(stock_data.get('createdAt')),
        updatedAt=convert_timestamp(stock_data.get('updatedAt'))
    )


def _ticker_taken(db, ticker: str, exclude_id: Optional[str] = None) -> bool:
    docs = db.collection(STOCKS_COLLECTION).where('ticker', '==', ticker).limit(2).get()
    return any(doc.id != exclude_id for doc in docs)


async def create_stock_service(stock_data: StockCreate) -> StockItemResponse:
    """Add a ticker to the watchlist. Each ticker may appear once."""
    db = get_firestore_client()

    if _ticker_taken(db, stock_data.ticker):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{stock_data.ticker} is already on the watchlist"
        )

    now = now_local()
    stock_doc = stock_data.model_dump()
    stock_doc.update({"createdAt": now, "updatedAt": now})

    try:
        doc_ref = db.collection(STOCKS_COLLECTION).document()
        doc_ref.set(stock_doc)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create watchlist entry: {str(e)}"
        )

    logger.info("stock_added", stock_id=doc_ref.id, ticker=stock_data.ticker)
    return StockItemResponse(item=_to_stock_info(doc_ref.id, stock_doc))


async def list_stocks_service(
    page: int = 1,
    size: int = 10,
    with_quotes: bool = True,
    guard: Optional[QuoteRequestGuard] = None
) -> StockListData:
    """Watchlist entries, newest first, with live quotes for the returned page."""
    db = get_firestore_client()

    try:
        docs = list(db.collection(STOCKS_COLLECTION).stream())
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve watchlist: {str(e)}"
        )

    entries = [(doc.id, doc.to_dict() or {}) for doc in docs]
    entries.sort(key=lambda pair: timestamp_sort_key(pair[1].get('createdAt')), reverse=True)
    page_entries, total, pages = paginate(entries, page, size)

    quotes: Dict[str, Quote] = {}
    if with_quotes and page_entries:
        tickers = list(dict.fromkeys(data.get('ticker') for _, data in page_entries if data.get('ticker')))
        quotes = await fetch_quotes(tickers, guard)

    items = [
        _to_stock_info(stock_id, data, quotes.get(data.get('ticker')))
        for stock_id, data in page_entries
    ]
    return StockListData(items=items, total=total, page=page, size=size, pages=pages)


async def get_stock_service(stock_id: str, guard: Optional[QuoteRequestGuard] = None) -> StockItemResponse:
    """One watchlist entry with its live quote."""
    db = get_firestore_client()
    stock_doc = db.collection(STOCKS_COLLECTION).document(stock_id).get()

    if not stock_doc.exists:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Watchlist entry not found")

    stock_data = stock_doc.to_dict() or {}
    ticker = stock_data.get('ticker')
    quotes = await fetch_quotes([ticker], guard) if ticker else {}
    return StockItemResponse(item=_to_stock_info(stock_id, stock_data, quotes.get(ticker)))


async def update_stock_service(stock_id: str, update_data: StockUpdate) -> StockItemResponse:
    """Update a watchlist entry; only the fields sent are changed."""
    db = get_firestore_client()
    stock_ref = db.collection(STOCKS_COLLECTION).document(stock_id)
    stock_doc = stock_ref.get()

    if not stock_doc.exists:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Watchlist entry not found")

    stock_data = stock_doc.to_dict() or {}
    update_dict = update_data.model_dump(exclude_unset=True)

    ticker = update_dict.get('ticker')
    if ticker and ticker != stock_data.get('ticker') and _ticker_taken(db, ticker, exclude_id=stock_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{ticker} is already on the watchlist"
        )

    update_dict["updatedAt"] = now_local()

    try:
        stock_ref.update(update_dict)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update watchlist entry: {str(e)}"
        )

    stock_data.update(update_dict)
    return StockItemResponse(item=_to_stock_info(stock_id, stock_data))


async def delete_stock_service(stock_id: str) -> str:
    """Remove a ticker from the watchlist."""
    db = get_firestore_client()
    stock_ref = db.collection(STOCKS_COLLECTION).document(stock_id)
    stock_doc = stock_ref.get()

    if not stock_doc.exists:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Watchlist entry not found")

    try:
        stock_ref.delete()
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete watchlist entry: {str(e)}"
        )

    logger.info("stock_removed", stock_id=stock_id)
    return "Watchlist entry deleted successfully"


async def get_quote_service(ticker: str, guard: QuoteRequestGuard) -> Quote:
    """
    Live quote for a single ticker.

    Raises:
        HTTPException: 400 for a blank ticker, 404 when no quote could be fetched
    """
    if not ticker or not ticker.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Ticker parameter required")

    quote = await guard.get(ticker)
    if quote is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Failed to fetch price for {ticker}")
    return quote
