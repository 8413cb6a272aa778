import os


def _bool_env(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "storefront")

JWT_SECRET = os.getenv("JWT_SECRET", "devsecret")
JWT_ALGO = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Conditional stock decrement on checkout. Off keeps the oversubscribing behaviour.
RESERVE_STOCK = _bool_env("RESERVE_STOCK")

PORT = int(os.getenv("PORT", 8000))

PASSWORD_HASH_ITERATIONS = int(os.getenv("PASSWORD_HASH_ITERATIONS", 260_000))

DEFAULT_PRODUCT_IMAGE = "/images/placeholder.jpg"

ENV = (os.getenv("ENV") or os.getenv("ENVIRONMENT") or "development").lower()
LOG_LEVEL = os.getenv("LOG_LEVEL")
