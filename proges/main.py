# Main application file

import logging
import time
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from proges.core.rate_limiter import limiter
from proges.core.config import settings
from proges.core.errors import BackendError
from proges.services import procedures  # noqa: F401  registers the RPC procedures
from proges.routers import (
    auth,
    clients,
    suppliers,
    products,
    sales,
    purchase_orders,
    documents,
    expenses,
    settings as settings_router,
    notifications,
    subscription,
    payments,
    admin,
    internal_admin,
)


# LOGGING CONFIGURATION

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)s | %(message)s",
)

logger = logging.getLogger("proges")


# APP INIT

app = FastAPI(
    title="Pro-GES API",
    description="Sales, inventory, purchasing and billing for small businesses",
    version="1.0.0",
)


# CORS (Token-based auth)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# RATE LIMITING

app.state.limiter = limiter
app.add_exception_handler(
    RateLimitExceeded,
    _rate_limit_exceeded_handler
)


# BACKEND FAILURES

@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError):
    return JSONResponse(status_code=502, content={"detail": exc.message})


# REQUEST LOGGING MIDDLEWARE

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    duration = round((time.time() - start_time) * 1000, 2)

    logger.info(
        f"{request.method} {request.url.path} "
        f"Status: {response.status_code} "
        f"Time: {duration}ms"
    )

    return response


# ROUTERS

app.include_router(auth.router)
app.include_router(clients.router)
app.include_router(suppliers.router)
app.include_router(products.router)
app.include_router(sales.router)
app.include_router(purchase_orders.router)
app.include_router(documents.router)
app.include_router(expenses.router)
app.include_router(settings_router.router)
app.include_router(notifications.router)
app.include_router(subscription.router)
app.include_router(payments.router)
app.include_router(admin.router)
app.include_router(internal_admin.router)


# FILE STORAGE (public bucket URLs)

Path(settings.STORAGE_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/storage", StaticFiles(directory=settings.STORAGE_DIR), name="storage")


# ROOT

@app.get("/")
def root():
    logger.info("Health check endpoint called")
    return {"message": "Pro-GES API is running"}
