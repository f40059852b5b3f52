# cartkit/utils/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cart.db")
REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://redis:6379/1")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://redis:6379/2")
PRODUCT_SERVICE_URL = os.getenv("PRODUCT_SERVICE_URL", "http://product-service:8000")

# tabela dla store/restore
CART_TABLE = os.getenv("CART_TABLE", "cart")
CART_DEFAULT_INSTANCE = os.getenv("CART_DEFAULT_INSTANCE", "default")

# domyslny format liczb (total/vat/subtotal)
CART_FORMAT_DECIMALS = int(os.getenv("CART_FORMAT_DECIMALS", 2))
CART_FORMAT_DECIMAL_POINT = os.getenv("CART_FORMAT_DECIMAL_POINT", ".")
CART_FORMAT_THOUSAND_SEPARATOR = os.getenv("CART_FORMAT_THOUSAND_SEPARATOR", ",")

CART_VAT_INCLUDED_LABEL = os.getenv("CART_VAT_INCLUDED_LABEL", "Iva Inclusa")
CART_VAT_EXEMPT_LABEL = os.getenv("CART_VAT_EXEMPT_LABEL", "Esente Iva")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
