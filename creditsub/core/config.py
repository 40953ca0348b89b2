import os

# ✅ Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./creditsub.db")
RUN_MIGRATIONS = os.getenv("RUN_MIGRATIONS", "0") == "1"

# ✅ Security
SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
ALGORITHM = os.getenv("ALGORITHM", "HS256")

# ✅ Stripe
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_CURRENCY = os.getenv("STRIPE_CURRENCY", "usd")
STRIPE_TIMEOUT_SECONDS = float(os.getenv("STRIPE_TIMEOUT_SECONDS", "20"))
STRIPE_MAX_NETWORK_RETRIES = int(os.getenv("STRIPE_MAX_NETWORK_RETRIES", "1"))

# ✅ Renewals
RENEWAL_HORIZON_HOURS = int(os.getenv("RENEWAL_HORIZON_HOURS", "24"))
RENEWAL_SWEEP_INTERVAL_SECONDS = int(os.getenv("RENEWAL_SWEEP_INTERVAL_SECONDS", "3600"))
RUN_RENEWAL_SCHEDULER = os.getenv("RUN_RENEWAL_SCHEDULER", "1") == "1"

# ✅ Service
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]
