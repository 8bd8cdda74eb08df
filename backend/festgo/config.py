# backend/festgo/config.py
from __future__ import annotations
import os


DEFAULT_PAYMENT_METHODS = "cash,card,mixed,transfer,administrator,entradas,dj,other"


def _csv(value: str) -> tuple[str, ...]:
    return tuple(part.strip().lower() for part in value.split(",") if part.strip())


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/festgo.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///festgo.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Bearer tokens are issued by the external auth provider; we only verify them.
    JWT_SECRET = os.environ.get("JWT_SECRET", "dev-jwt-secret-change-me")
    JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")
    JWT_EXPIRES_MINUTES = int(os.environ.get("JWT_EXPIRES_MINUTES", "720"))

    # 2100 bps = 21%
    TAX_RATE_BPS = int(os.environ.get("TAX_RATE_BPS", "0"))
    CURRENCY = os.environ.get("CURRENCY", "ARS")

    PAYMENT_METHODS = _csv(os.environ.get("PAYMENT_METHODS", DEFAULT_PAYMENT_METHODS))
    DEFAULT_PAYMENT_METHOD = os.environ.get("DEFAULT_PAYMENT_METHOD", "cash")

    # "global": product codes resolve against the whole catalog
    # "event": only products bound to the cart's event
    CATALOG_SCOPE = os.environ.get("CATALOG_SCOPE", "global")

    # Soft availability check when adding to a cart: "event", "bar" or "off"
    CART_STOCK_CHECK = os.environ.get("CART_STOCK_CHECK", "event")

    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "10"))

    # Receipt header / footer / printer hints
    BUSINESS_NAME = os.environ.get("BUSINESS_NAME", "FestGo")
    BUSINESS_ADDRESS = os.environ.get("BUSINESS_ADDRESS", "")
    BUSINESS_PHONE = os.environ.get("BUSINESS_PHONE", "")
    BUSINESS_TAX_ID = os.environ.get("BUSINESS_TAX_ID", "")
    BUSINESS_EMAIL = os.environ.get("BUSINESS_EMAIL", "")
    BUSINESS_WEBSITE = os.environ.get("BUSINESS_WEBSITE", "")
    RECEIPT_THANK_YOU = os.environ.get("RECEIPT_THANK_YOU", "Gracias por su compra")
    RECEIPT_FOOTER = os.environ.get("RECEIPT_FOOTER", "")
    PRINTER_PAPER_WIDTH = int(os.environ.get("PRINTER_PAPER_WIDTH", "80"))
    PRINTER_FONT_SIZE = int(os.environ.get("PRINTER_FONT_SIZE", "12"))
    PRINTER_FONT_FAMILY = os.environ.get("PRINTER_FONT_FAMILY", "monospace")

    # Browser origins allowed to call the API (comma separated)
    CORS_ORIGINS = tuple(
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    )
