import json
import os
from contextlib import asynccontextmanager

import firebase_admin
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from firebase_admin import credentials

load_dotenv()

from pos_api.common.logging import configure_logging, get_logger
from pos_api.stocks.quotes import QuoteRequestGuard

configure_logging()
logger = get_logger("main")


def load_firebase_credentials() -> credentials.Certificate:
    """
    Load Firebase credentials.

    Priority: FIREBASE_CREDENTIALS_JSON_CONTENT env var (for production),
    falling back to a local service account file (for local development).
    """
    firebase_cred_json_content = os.environ.get('FIREBASE_CREDENTIALS_JSON_CONTENT')

    if firebase_cred_json_content:
        try:
            cred = credentials.Certificate(json.loads(firebase_cred_json_content))
        except json.JSONDecodeError as e:
            logger.critical("firebase_credentials_invalid_json", error=str(e))
            raise
        logger.info("firebase_credentials_loaded", source="FIREBASE_CREDENTIALS_JSON_CONTENT")
        return cred

    local_cred_file = os.environ.get('FIREBASE_CREDENTIALS_FILE', 'firebase-adminsdk.json')
    try:
        cred = credentials.Certificate(local_cred_file)
    except FileNotFoundError:
        logger.critical(
            "firebase_credentials_missing",
            file=local_cred_file,
            hint="Set FIREBASE_CREDENTIALS_JSON_CONTENT or provide the local credentials file"
        )
        raise
    logger.info("firebase_credentials_loaded", source=local_cred_file)
    return cred


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not firebase_admin._apps:
        firebase_admin.initialize_app(load_firebase_credentials())
    app.state.quote_guard = QuoteRequestGuard()
    logger.info("app_started", timezone=os.environ.get("APP_TIMEZONE", "Asia/Jakarta"))
    yield
    logger.info("app_stopped")


app = FastAPI(title="Printing POS API", lifespan=lifespan)

from pos_api.products.routers import router as products_router
from pos_api.customers.routers import router as customers_router
from pos_api.sales.routers import router as sales_router
from pos_api.invoices.routers import router as invoices_router
from pos_api.reports.routers import router as reports_router
from pos_api.users.routers import router as users_router
from pos_api.stocks.routers import router as stocks_router

app.include_router(products_router, prefix="/products", tags=["products"])
app.include_router(customers_router, prefix="/customers", tags=["customers"])
app.include_router(sales_router, prefix="/sales", tags=["sales"])
app.include_router(invoices_router, prefix="/sales", tags=["invoices"])
app.include_router(reports_router, prefix="/reports", tags=["reports"])
app.include_router(users_router, prefix="/users", tags=["users"])
app.include_router(stocks_router, prefix="/stocks", tags=["stocks"])


@app.get("/")
def read_root():
    """Root endpoint for the API.
    Returns:
        A simple message indicating the API is running.
    """
    return {"message": "Printing POS API"}


if __name__ == "__main__":
    # Set port from environment variable or default to 8000
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", 8000)))
