from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from datetime import datetime
import logging
import os

from config import CORS_ALLOWED_ORIGINS, LOG_DIR, LOG_LEVEL
from database import Base, engine
from exceptions import LedgerError
import models  # noqa: F401  registers every table on Base.metadata
import routers.audit_logs as audit_logs
import routers.banks as banks
import routers.chart_of_accounts as chart_of_accounts
import routers.expenses as expenses
import routers.financial_settings as financial_settings
import routers.journal_entry as journal_entry
import routers.purchase_order_payments as purchase_order_payments
import routers.suppliers as suppliers
from utils.currency import ExchangeRateService
from utils.http_errors import to_http_exception


os.makedirs(LOG_DIR, exist_ok=True)

# One log file per start
current_time_str = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
LOG_FILE = os.path.join(LOG_DIR, f"app_{current_time_str}.log")

logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=LOG_FILE,
    filemode='a'
)

# Also log to the console
console_handler = logging.StreamHandler()
console_handler.setLevel(LOG_LEVEL)
console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logging.getLogger().addHandler(console_handler)

logger = logging.getLogger(__name__)
logger.info("Application starting up...")


# Create database tables
Base.metadata.create_all(bind=engine)


app = FastAPI()
app.state.exchange_rates = ExchangeRateService()

allowed_origins = [origin.strip() for origin in CORS_ALLOWED_ORIGINS.split(',')]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="Ledger API",
        version="1.0.0",
        description="Chart of accounts, journal entries, reversals, payments and audit trail",
        routes=app.routes,
    )
    openapi_schema["components"]["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    # Apply security globally to all endpoints
    openapi_schema["security"] = [{"BearerAuth": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    # Fallback for ledger errors a router did not translate itself
    http_exc = to_http_exception(exc)
    logger.warning(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


app.include_router(chart_of_accounts.router)
app.include_router(financial_settings.router)
app.include_router(journal_entry.router)
app.include_router(audit_logs.router)
app.include_router(banks.router)
app.include_router(suppliers.router)
app.include_router(purchase_order_payments.router)
app.include_router(expenses.router)


@app.get("/")
async def root():
    return {"message": "Welcome to the Ledger API!"}
