"""
Market quote client for the stock watchlist.

Each ticker needs two upstream calls, the quote itself and the analyst
recommendation trend, issued concurrently. A failed recommendation call only
drops the recommendation; a failed quote call means no quote for the ticker.
Batches of tickers are fetched concurrently with a short pause between
batches to stay under the provider's rate limits.
"""
import asyncio
import os
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from pos_api.common.cache import generate_cache_key, get_cache, set_cache
from pos_api.common.logging import get_logger
from .schemas import Quote, Recommendation, RecommendationKey

logger = get_logger(__name__)

QUOTE_API_URL = os.environ.get("QUOTE_API_URL", "https://query1.finance.yahoo.com/v7/finance/quote")
QUOTE_SUMMARY_API_URL = os.environ.get(
    "QUOTE_SUMMARY_API_URL",
    "https://query2.finance.yahoo.com/v10/finance/quoteSummary/{ticker}"
)
QUOTE_BATCH_SIZE = int(os.environ.get("QUOTE_BATCH_SIZE", 5))
QUOTE_BATCH_DELAY = float(os.environ.get("QUOTE_BATCH_DELAY", 0.1))
QUOTE_TIMEOUT = float(os.environ.get("QUOTE_TIMEOUT", 10))
QUOTE_CACHE_TTL = int(os.environ.get("QUOTE_CACHE_TTL", 60))

REQUEST_HEADERS = {"User-Agent": "Mozilla/5.0 (compatible; pos-api quote client)"}

QuoteFetcher = Callable[[str], Awaitable[Optional[Quote]]]


def normalize_ticker(ticker: str) -> str:
    return ticker.strip().upper()


def _raw(value: Any) -> Any:
    # Some provider fields arrive as {"raw": 1.5, "fmt": "1.50"}
    if isinstance(value, dict):
        return value.get("raw")
    return value


def _count(value: Any) -> int:
    value = _raw(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    return 0


def derive_recommendation_key(
    strong_buy: int,
    buy: int,
    hold: int,
    sell: int,
    strong_sell: int
) -> Optional[RecommendationKey]:
    """
    Summarise analyst counts into one recommendation.

    Buy-side wins when it outnumbers both sell-side and hold, and is "strong"
    when strong buys outnumber plain buys; sell-side mirrors that. Anything
    else is hold. No analysts means no recommendation.
    """
    if strong_buy + buy + hold + sell + strong_sell <= 0:
        return None

    buy_score = strong_buy + buy
    sell_score = sell + strong_sell

    if buy_score > sell_score and buy_score > hold:
        return RecommendationKey.STRONG_BUY if strong_buy > buy else RecommendationKey.BUY
    if sell_score > buy_score and sell_score > hold:
        return RecommendationKey.STRONG_SELL if strong_sell > sell else RecommendationKey.SELL
    return RecommendationKey.HOLD


def parse_recommendation(summary_payload: Optional[dict], recommendation_mean: Any = None) -> Optional[Recommendation]:
    """Latest recommendation trend from a quote-summary payload, if present."""
    if not summary_payload:
        return None
    try:
        result = summary_payload["quoteSummary"]["result"][0]
        latest = result["recommendationTrend"]["trend"][0]
    except (KeyError, IndexError, TypeError):
        return None

    counts = {
        "strongBuy": _count(latest.get("strongBuy")),
        "buy": _count(latest.get("buy")),
        "hold": _count(latest.get("hold")),
        "sell": _count(latest.get("sell")),
        "strongSell": _count(latest.get("strongSell")),
    }
    mean = _raw(recommendation_mean)
    return Recommendation(
        **counts,
        recommendationMean=mean if isinstance(mean, (int, float)) else None,
        recommendationKey=derive_recommendation_key(
            counts["strongBuy"], counts["buy"], counts["hold"], counts["sell"], counts["strongSell"]
        )
    )


def parse_quote(ticker: str, quote_payload: Optional[dict], summary_payload: Optional[dict] = None) -> Optional[Quote]:
    """Build a Quote from provider payloads; None when the quote payload has no result."""
    try:
        results = quote_payload["quoteResponse"]["result"]
    except (KeyError, TypeError):
        return None
    if not results:
        return None

    data = results[0]
    return Quote(
        symbol=data.get("symbol") or ticker,
        price=_raw(data.get("regularMarketPrice")) or 0,
        change=_raw(data.get("regularMarketChange")) or 0,
        changePercent=_raw(data.get("regularMarketChangePercent")) or 0,
        currency=data.get("currency") or "USD",
        marketState=data.get("marketState") or "CLOSED",
        companyName=data.get("longName") or data.get("shortName") or "",
        recommendation=parse_recommendation(summary_payload, data.get("recommendationMean"))
    )


async def _get_json(client: httpx.AsyncClient, url: str, params: Optional[dict] = None) -> dict:
    response = await client.get(url, params=params)
    response.raise_for_status()
    return response.json()


async def fetch_quote(ticker: str, client: Optional[httpx.AsyncClient] = None) -> Optional[Quote]:
    """
    Fetch one ticker's quote and recommendation from the provider.

    Returns:
        Quote, or None if the quote itself could not be fetched or parsed
    """
    symbol = normalize_ticker(ticker)
    if not symbol:
        return None

    if client is None:
        async with httpx.AsyncClient(timeout=QUOTE_TIMEOUT, headers=REQUEST_HEADERS) as own_client:
            return await fetch_quote(symbol, own_client)

    quote_payload, summary_payload = await asyncio.gather(
        _get_json(client, QUOTE_API_URL, params={"symbols": symbol}),
        _get_json(client, QUOTE_SUMMARY_API_URL.format(ticker=symbol), params={"modules": "recommendationTrend"}),
        return_exceptions=True
    )

    if isinstance(quote_payload, Exception):
        logger.warning("quote_fetch_failed", ticker=symbol, error=str(quote_payload))
        return None
    if isinstance(summary_payload, Exception):
        logger.info("recommendation_fetch_failed", ticker=symbol, error=str(summary_payload))
        summary_payload = None

    quote = parse_quote(symbol, quote_payload, summary_payload)
    if quote is None:
        logger.warning("quote_missing_in_response", ticker=symbol)
    return quote


async def get_quote(ticker: str) -> Optional[Quote]:
    """Quote for one ticker, served from Redis when a fresh copy is cached."""
    symbol = normalize_ticker(ticker)
    cache_key = generate_cache_key("quote", {"ticker": symbol})

    cached = await get_cache(cache_key)
    if cached:
        return Quote.model_validate(cached)

    quote = await fetch_quote(symbol)
    if quote is not None:
        await set_cache(cache_key, quote.model_dump(mode="json"), ttl=QUOTE_CACHE_TTL)
    return quote


class QuoteRequestGuard:
    """
    Coalesces concurrent requests for the same ticker onto one in-flight fetch.

    One guard is owned per application. A ticker's entry lives only while its
    fetch is running, so later requests start a fresh fetch (or hit the cache).
    """

    def __init__(self, fetcher: Optional[QuoteFetcher] = None):
        self._fetcher = fetcher or get_quote
        self._in_flight: Dict[str, asyncio.Task] = {}

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def _forget(self, symbol: str, task: asyncio.Task) -> None:
        if self._in_flight.get(symbol) is task:
            del self._in_flight[symbol]

    async def get(self, ticker: str) -> Optional[Quote]:
        symbol = normalize_ticker(ticker)
        task = self._in_flight.get(symbol)
        if task is None:
            task = asyncio.ensure_future(self._fetcher(symbol))
            self._in_flight[symbol] = task
            task.add_done_callback(lambda done, key=symbol: self._forget(key, done))
        # One caller giving up must not cancel the fetch the others are waiting on
        return await asyncio.shield(task)


async def fetch_quotes(
    tickers: List[str],
    guard: Optional[QuoteRequestGuard] = None,
    batch_size: int = QUOTE_BATCH_SIZE,
    delay: float = QUOTE_BATCH_DELAY
) -> Dict[str, Quote]:
    """
    Quotes for many tickers, keyed by the ticker as requested.

    Tickers whose fetch fails are left out of the result.
    """
    guard = guard or QuoteRequestGuard()
    batch_size = max(batch_size, 1)
    prices: Dict[str, Quote] = {}

    for start in range(0, len(tickers), batch_size):
        batch = tickers[start:start + batch_size]
        results = await asyncio.gather(*(guard.get(ticker) for ticker in batch), return_exceptions=True)

        for ticker, result in zip(batch, results):
            if isinstance(result, Exception):
                logger.warning("quote_fetch_errored", ticker=ticker, error=str(result))
            elif result is not None:
                prices[ticker] = result

        if start + batch_size < len(tickers):
            await asyncio.sleep(delay)

    logger.debug("quotes_fetched", requested=len(tickers), returned=len(prices))
    return prices
