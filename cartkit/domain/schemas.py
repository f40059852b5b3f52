# cartkit/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Literal
from decimal import Decimal

from cartkit.domain.inputs import ItemAttributes


class _CamelModel(BaseModel):
    # JSON w camelCase, tak jak rekord LineItem
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ItemIn(_CamelModel):
    """Schema dla dodawania wiersza do koszyka."""

    id: int | str
    name: str = Field(..., min_length=1)
    subtitle: str = ""
    qty: int = Field(..., gt=0, description="Ilość (musi być > 0)")
    price: Decimal = Field(..., ge=0)
    total_price: Decimal
    vat: Decimal
    vat_fc_code: str = ""
    product_fc_code: str = ""
    url_img: str = ""
    options: Dict[str, Any] = Field(default_factory=dict)

    def to_attributes(self) -> ItemAttributes:
        return ItemAttributes(**self.model_dump())


class ProductIn(BaseModel):
    """Schema dla dodawania produktu z product-service."""

    qty: int = Field(1, gt=0)
    options: Dict[str, Any] = Field(default_factory=dict)


class ItemUpdateIn(_CamelModel):
    """Czesciowa aktualizacja wiersza, qty <= 0 usuwa wiersz."""

    id: int | str | None = None
    name: str | None = None
    subtitle: str | None = None
    qty: int | None = None
    price: Decimal | None = None
    total_price: Decimal | None = None
    vat: Decimal | None = None
    url_img: str | None = None
    options: Dict[str, Any] | None = None

    def to_changes(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


class CouponIn(_CamelModel):
    """Kupon bez row_id jest globalny (na caly koszyk)."""

    row_id: str | None = None
    coupon_code: str = Field(..., min_length=1)
    coupon_type: Literal["fixed", "percentage"]
    coupon_value: Decimal = Field(..., ge=0)


class OptionsIn(BaseModel):
    options: Dict[str, Any]


class AppliedCouponOut(_CamelModel):
    coupon_code: str
    coupon_type: str
    coupon_value: Decimal
    discount_value: Decimal


class LineItemOut(_CamelModel):
    """Schema dla wiersza koszyka (response)."""

    row_id: str
    id: int | str
    qty: int | Decimal
    name: str
    subtitle: str
    original_price: Decimal
    original_total_price: Decimal
    original_vat: Decimal
    price: Decimal
    total_price: Decimal
    vat: Decimal
    vat_label: str
    vat_rate: Decimal
    vat_fc_code: str
    product_fc_code: str
    discount_value: Decimal
    url_img: str
    options: Dict[str, Any]
    associated_model: str | None = None
    model: Any = None
    applied_coupons: Dict[str, AppliedCouponOut]


class CartCouponOut(_CamelModel):
    row_id: str
    coupon_code: str
    coupon_type: str
    coupon_value: Decimal


class CartOut(_CamelModel):
    """Schema dla koszyka (response)."""

    instance: str
    items: List[LineItemOut]
    count: int | Decimal
    subtotal: Decimal
    vat: Decimal
    total: Decimal
    vat_label: str
    coupons: Dict[str, CartCouponOut]
    options: Dict[str, Any]
