import os
from decimal import Decimal, InvalidOperation


def _bool_env(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _decimal_env(name: str, default: str) -> Decimal:
    value = os.environ.get(name)
    if value is None:
        return Decimal(default)
    try:
        return Decimal(value.strip())
    except InvalidOperation:
        return Decimal(default)


class Config:
    BASE_DIR = os.path.dirname(os.path.dirname(__file__))
    DATABASE_URL = os.environ.get("DATABASE_URL")
    DATABASE_DIR = None if DATABASE_URL else os.path.join(BASE_DIR, "database")
    DB_PATH = DATABASE_URL or os.path.join(DATABASE_DIR, "texlink_pedidos.db")

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-texlink")
    DB_AUTO_INIT = _bool_env("DB_AUTO_INIT", False)
    LOG_JSON = _bool_env("LOG_JSON", True)
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    PLATFORM_FEE_RATE = _decimal_env("PLATFORM_FEE_RATE", "0.10")
    DISPLAY_ID_PREFIX = os.environ.get("DISPLAY_ID_PREFIX", "TX")
    DISPLAY_ID_MAX_ATTEMPTS = _int_env("DISPLAY_ID_MAX_ATTEMPTS", 5)
    REWORK_DEFAULT_DEADLINE_DAYS = _int_env("REWORK_DEFAULT_DEADLINE_DAYS", 14)
    REWORK_MAX_ATTEMPTS = _int_env("REWORK_MAX_ATTEMPTS", 3)
    ORDER_PERMISSIONS_ENFORCED = _bool_env("ORDER_PERMISSIONS_ENFORCED", True)

    def __init__(self):
        env = os.environ.get("FLASK_ENV", "development").lower()
        if env == "production" and not self.DATABASE_URL:
            raise RuntimeError("DATABASE_URL nao definida para ambiente de producao.")
        if env == "production" and self.SECRET_KEY == "dev-secret-texlink":
            raise RuntimeError("SECRET_KEY insegura para producao.")
