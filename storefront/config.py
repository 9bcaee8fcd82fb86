# storefront/config.py
import os

PACKAGE_DIR = os.path.dirname(__file__)
DEFAULT_SQLITE = f"sqlite:///{os.path.join(PACKAGE_DIR, 'database', 'app.db')}"


def _flag(name, default):
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def normalize_database_url(raw_url: str) -> str:
    """
    Provedores (Render/Heroku) entregam DATABASE_URL como postgres://...
    Troca para o driver psycopg e força SSL no Postgres.
    """
    if not raw_url:
        return DEFAULT_SQLITE
    url = raw_url
    if url.startswith("postgres://"):
        url = "postgresql+psycopg://" + url[len("postgres://"):]
    elif url.startswith("postgresql://"):
        url = "postgresql+psycopg://" + url[len("postgresql://"):]
    if url.startswith("postgresql+psycopg://") and "sslmode=" not in url:
        sep = "&" if "?" in url else "?"
        url = f"{url}{sep}sslmode=require"
    return url


def load_config():
    """Configuração vinda do ambiente; create_app ainda aplica overrides por cima"""
    smtp_host = os.getenv("SMTP_HOST", "")
    return {
        "SECRET_KEY": os.getenv("SECRET_KEY", "storefront_dev_secret_key"),
        "SQLALCHEMY_DATABASE_URI": normalize_database_url(os.getenv("DATABASE_URL", "")),
        "SQLALCHEMY_TRACK_MODIFICATIONS": False,
        "SQLALCHEMY_ENGINE_OPTIONS": {"pool_pre_ping": True},
        "CORS_ORIGINS": [
            o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()
        ],
        "DEFAULT_COUNTRY": os.getenv("DEFAULT_COUNTRY", "Nigeria"),
        "ORDER_NUMBER_MAX_ATTEMPTS": int(os.getenv("ORDER_NUMBER_MAX_ATTEMPTS", "3")),
        "ORDER_CANCEL_REFUND_POLICY": os.getenv("ORDER_CANCEL_REFUND_POLICY", "always"),
        "MAIL_BACKEND": os.getenv("MAIL_BACKEND") or ("smtp" if smtp_host else "console"),
        "MAIL_ASYNC": _flag("MAIL_ASYNC", True),
        "MAIL_FROM_NAME": os.getenv("MAIL_FROM_NAME", "Storefront"),
        "MAIL_FROM_EMAIL": os.getenv("MAIL_FROM_EMAIL", ""),
        "SMTP_HOST": smtp_host,
        "SMTP_PORT": int(os.getenv("SMTP_PORT", "587")),
        "SMTP_USER": os.getenv("SMTP_USER", ""),
        "SMTP_PASS": os.getenv("SMTP_PASS", ""),
        "CURRENCY_SYMBOL": os.getenv("CURRENCY_SYMBOL", "₦"),
        "TOKEN_MAX_AGE": int(os.getenv("TOKEN_MAX_AGE", "86400")),
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO"),
        "DEBUG_ROUTES": os.getenv("DEBUG_ROUTES") == "1",
    }
