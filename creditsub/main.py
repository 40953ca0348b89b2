import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# ✅ Import All API Routes
from creditsub.api.routes import plans, payment_methods, payments, subscriptions, credits, health

from creditsub.core import config
from creditsub.core.errors import BillingError, billing_error_handler
from creditsub.core.logging_config import setup_logging, sanitize_log_data
from creditsub.db.session import SessionLocal
from creditsub.services.renewal_service import RenewalScheduler
from creditsub.services.stripe_service import StripeChargeGateway

logger = logging.getLogger(__name__)


# ============================================
# ✅ STARTUP / SHUTDOWN
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(config.LOG_LEVEL)
    logger.info(f"Starting creditsub API: {sanitize_log_data({'database_url': config.DATABASE_URL, 'log_level': config.LOG_LEVEL})}")

    if config.RUN_MIGRATIONS:
        from creditsub.db.migrate import run_migrations
        run_migrations()
    else:
        from creditsub.db.init_db import init_db
        init_db()

    if config.STRIPE_SECRET_KEY:
        app.state.gateway = StripeChargeGateway()
    else:
        app.state.gateway = None
        logger.warning("STRIPE_SECRET_KEY not configured - payments and renewals disabled")

    renewal_task = None
    if app.state.gateway is not None:
        app.state.renewal_scheduler = RenewalScheduler(SessionLocal, app.state.gateway)
        if config.RUN_RENEWAL_SCHEDULER:
            renewal_task = asyncio.create_task(
                app.state.renewal_scheduler.run_forever(config.RENEWAL_SWEEP_INTERVAL_SECONDS)
            )
    else:
        app.state.renewal_scheduler = None

    yield

    if renewal_task:
        renewal_task.cancel()
        try:
            await renewal_task
        except asyncio.CancelledError:
            pass
    logger.info("creditsub API stopped")


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="creditsub API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)

app.add_exception_handler(BillingError, billing_error_handler)


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(plans.router)
app.include_router(payment_methods.router)
app.include_router(payments.router)
app.include_router(subscriptions.router)
app.include_router(credits.router)
app.include_router(health.router)


@app.get("/")
def root():
    return {"status": "creditsub API running"}
