# shopledger/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from shopledger import __version__
from shopledger.core.config import settings
from shopledger.core.logging import setup_logging
from shopledger.database import engine
from shopledger.errors import LedgerError
from shopledger.models import Base
from shopledger.routers import (
    products, inventory, sales, returns, purchases, contacts
)

setup_logging()
logger = logging.getLogger(__name__)

# 1. AUTOMATIC TABLE CREATION
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Sales, returns and refunds ledger for a retail shop",
    version=__version__,
)

# 2. CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 3. ROUTERS
prefix = settings.API_PREFIX
app.include_router(products.router, prefix=f"{prefix}/products", tags=["Products"])
app.include_router(inventory.router, prefix=f"{prefix}/inventory", tags=["Inventory & Kardex"])
app.include_router(sales.router, prefix=f"{prefix}/sales", tags=["Sales"])
app.include_router(returns.router, prefix=f"{prefix}/returns", tags=["Returns & Refunds"])
app.include_router(purchases.router, prefix=f"{prefix}/bulk-purchases", tags=["Bulk Purchases"])
app.include_router(contacts.router, prefix=f"{prefix}/contacts", tags=["Contacts & Loans"])


@app.get("/health")
def health():
    return {"status": "ok", "version": __version__}


# 4. ERROR HANDLING
@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.code},
    )
