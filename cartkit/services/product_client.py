# cartkit/services/product_client.py
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import requests

from cartkit.domain.money import to_decimal
from cartkit.utils.retry import http_retry
from cartkit.utils.settings import PRODUCT_SERVICE_URL
from cartkit.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ProductBuyable:
    """Produkt z product-service w ksztalcie Buyable."""

    id: Any
    name: str
    price: Decimal
    total_price: Decimal
    vat: Decimal
    subtitle: str = ""
    qty: int = 1
    vat_fc_code: str = ""
    product_fc_code: str = ""
    url_img: str = ""
    options: dict = field(default_factory=dict)

    @classmethod
    def from_record(cls, data: dict, options: dict | None = None) -> "ProductBuyable":
        return cls(
            id=data["id"],
            name=data["name"],
            subtitle=data.get("subtitle", ""),
            price=to_decimal(data["price"], "price"),
            total_price=to_decimal(data["totalPrice"], "total price"),
            vat=to_decimal(data["vat"], "vat"),
            vat_fc_code=data.get("vatFcCode", ""),
            product_fc_code=data.get("productFcCode", ""),
            url_img=data.get("urlImg", ""),
            options=dict(options or {}),
        )


class ProductClient:
    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def fetch_product(self, product_id: Any) -> dict:
        url = f"{self.base_url}/products/{product_id}"
        logger.info(f"ProductClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def fetch_buyable(self, product_id: Any, options: dict | None = None) -> ProductBuyable:
        return ProductBuyable.from_record(self.fetch_product(product_id), options)
