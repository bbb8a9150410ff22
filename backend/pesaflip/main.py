"""
PesaFlip Backend: business finance API for SMEs.

ARCHITECTURE:
- Next.js Dashboard: invoices, expenses, wallet, credit, reports
- FastAPI Backend: validation, business rules, persistence
- SQLite/SQL DB: source of truth for all state

LEDGER SAFETY:
- Wallet balance never goes negative (service check + DB constraint)
- Balance change and its transaction record commit together
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from pesaflip.api.routes import admin, auth, credit, expenses, invoice_ai, invoices, reports, wallet
from pesaflip.core.config import settings
from pesaflip.core.exceptions import register_exception_handlers
from pesaflip.core.rate_limiter import RateLimitMiddleware
from pesaflip.db.init_db import init_db
from pesaflip.jobs.invoice_reminders import start_reminder_scheduler, stop_reminder_scheduler

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
    1. Initialize database tables (and seed the admin account)
    2. Start the invoice reminder scheduler (if enabled)

    Shutdown:
    1. Stop the reminder scheduler
    """
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized")

    if settings.REMINDER_SCHEDULER_ENABLED:
        start_reminder_scheduler()
    else:
        logger.info("Invoice reminder scheduler disabled (REMINDER_SCHEDULER_ENABLED=false)")

    yield

    stop_reminder_scheduler()


app = FastAPI(
    title="PesaFlip API",
    description="Invoicing, expenses, wallet, credit and reports for Kenyan SMEs.",
    version="0.1.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

# SECURITY: Trust only specific hosts
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# SECURITY: Restrict CORS to specific methods and headers (not wildcards)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
    ],
    max_age=600,  # Cache preflight for 10 minutes
    expose_headers=["Content-Type", "Content-Disposition"],
)

# SECURITY: Rate limiting to prevent brute force and DoS attacks
app.add_middleware(RateLimitMiddleware)


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"  # Prevent MIME sniffing
    response.headers["X-Frame-Options"] = "DENY"  # Prevent clickjacking
    response.headers["X-XSS-Protection"] = "1; mode=block"
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(wallet.router, prefix="/api/wallet", tags=["wallet"])
app.include_router(invoice_ai.router, prefix="/api/invoices/ai", tags=["invoice-ai"])
app.include_router(invoices.router, prefix="/api/invoices", tags=["invoices"])
app.include_router(expenses.router, prefix="/api/expenses", tags=["expenses"])
app.include_router(credit.router, prefix="/api/credit", tags=["credit"])
app.include_router(reports.router, prefix="/api/reports", tags=["reports"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])


@app.get("/health")
def health():
    return {
        "status": "ok",
        "reminder_scheduler": "enabled" if settings.REMINDER_SCHEDULER_ENABLED else "disabled",
    }
