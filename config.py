import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as tutorbook.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "tutorbook.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # bcrypt cost for new password hashes; older hashes are upgraded at login
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Session cookie name for our auth token
    AUTH_COOKIE_NAME = "tutorbook_session"

    # 8 hours session lifetime
    SESSION_LIFETIME_SECONDS = 8 * 60 * 60

    # Idle timeout: 60 minutes
    IDLE_TIMEOUT_SECONDS = 60 * 60

    # Session/cookie security defaults
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"

    # Double-submit CSRF check for authenticated state-changing requests
    CSRF_ENABLED = os.getenv("CSRF_ENABLED", "true").lower() == "true"

    # Tickets
    TICKET_PRICE_JPY = int(os.getenv("TICKET_PRICE_JPY", "1000"))
    # /api/tickets/add and /api/tickets/reset are dev/test helpers
    ENABLE_DEV_TICKET_ENDPOINTS = os.getenv("ENABLE_DEV_TICKET_ENDPOINTS", "false").lower() == "true"

    # Stripe checkout for online ticket purchase
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
    STRIPE_SUCCESS_URL = os.getenv("STRIPE_SUCCESS_URL")
    STRIPE_CANCEL_URL = os.getenv("STRIPE_CANCEL_URL")

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_FROM_NAME = os.getenv("SMTP_FROM_NAME", "TutorBook")
    SMTP_REPLY_TO = os.getenv("SMTP_REPLY_TO")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"
    # port 465 style implicit TLS; takes precedence over SMTP_USE_TLS
    SMTP_USE_SSL = os.getenv("SMTP_USE_SSL", "false").lower() == "true"

    # Basic app settings
    DEBUG = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
