"""
Invoice Ledger: FastAPI application.

This is the entry point for the application.
All routers and exception handlers are registered here.
"""

from fastapi import FastAPI

from invoice_ledger.config import get_settings
from invoice_ledger.exceptions import BookkeepingError, bookkeeping_exception_handler
from invoice_ledger.logging_config import configure_logging
from invoice_ledger.api.health import router as health_router
from invoice_ledger.api.invoices import router as invoices_router
from invoice_ledger.api.customers import router as customers_router
from invoice_ledger.api.ledger import router as ledger_router

settings = get_settings()

configure_logging()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Invoices, customers and their running ledgers",
)

app.add_exception_handler(BookkeepingError, bookkeeping_exception_handler)

# Register routers
app.include_router(health_router)
app.include_router(invoices_router)
app.include_router(customers_router)
app.include_router(ledger_router)
