# cartkit/domain/line_item.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Mapping

from cartkit.domain.errors import CartValidationError, CouponNotAppliedError
from cartkit.domain.inputs import Buyable, ItemAttributes, MAPPING_FIELDS
from cartkit.domain.money import HUNDRED, ZERO, round2, to_decimal
from cartkit.domain.row_identity import generate_row_id
from cartkit.utils.settings import CART_VAT_EXEMPT_LABEL, CART_VAT_INCLUDED_LABEL

COUPON_FIXED = "fixed"
COUPON_PERCENTAGE = "percentage"
COUPON_GLOBAL = "global"

# typy dozwolone z zewnatrz; global nakladany tylko przez koszyk na wiersz rabatu
COUPON_TYPES = (COUPON_FIXED, COUPON_PERCENTAGE)

_PRICING_FIELDS = ("price", "total_price", "vat")


def coerce_quantity(qty: Any) -> int | Decimal:
    if qty is None or qty == "" or isinstance(qty, bool):
        raise CartValidationError(f"Please supply a valid quantity. Provided: {qty}")
    try:
        value = to_decimal(qty, "quantity")
    except CartValidationError:
        raise CartValidationError(f"Please supply a valid quantity. Provided: {qty}") from None
    return int(value) if value == value.to_integral_value() else value


@dataclass
class AppliedCoupon:
    coupon_code: str
    coupon_type: str
    coupon_value: Decimal
    discount_value: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "couponCode": self.coupon_code,
            "couponType": self.coupon_type,
            "couponValue": self.coupon_value,
            "discountValue": self.discount_value,
        }


class LineItem:
    """
    Jeden wiersz koszyka razem z maszyna stanow cen.

    Pola original_* to migawka z chwili utworzenia, kupony zmieniaja tylko
    price / total_price / vat. vat_rate liczony raz, z vat i total_price,
    potem sluzy wylacznie do odtworzenia price i vat z total_price po kazdym
    zdarzeniu kuponu.
    """

    def __init__(
        self,
        id: Any,
        name: str,
        subtitle: str,
        qty: Any,
        price: Any,
        total_price: Any,
        vat: Any,
        vat_fc_code: str = "",
        product_fc_code: str = "",
        url_img: str = "",
        options: Mapping[str, Any] | None = None,
    ):
        if id is None or id == "":
            raise CartValidationError("Please supply a valid identifier.")
        if not name:
            raise CartValidationError("Please supply a valid name.")

        price = to_decimal(price, "price")
        if price < 0:
            raise CartValidationError("Please supply a valid price.")

        self.id = id
        self.name = name
        self.subtitle = subtitle or ""
        self.qty = coerce_quantity(qty)
        self.vat_fc_code = vat_fc_code or ""
        self.product_fc_code = product_fc_code or ""
        self.url_img = url_img or ""
        self.options = dict(options or {})

        self.associated_model: str | None = None
        self.model: Any = None

        self.discount_value = ZERO
        self.applied_coupons: Dict[str, AppliedCoupon] = {}

        self._snapshot_pricing(
            price,
            to_decimal(total_price, "total price"),
            to_decimal(vat, "vat"),
        )
        self.row_id = generate_row_id(self.id, self.options)

    # ------------------------------------------------------------------
    # konstruktory dla wariantow wejscia
    # ------------------------------------------------------------------
    @classmethod
    def from_attributes(cls, attributes: ItemAttributes) -> "LineItem":
        return cls(
            attributes.id,
            attributes.name,
            attributes.subtitle,
            attributes.qty,
            attributes.price,
            attributes.total_price,
            attributes.vat,
            attributes.vat_fc_code,
            attributes.product_fc_code,
            attributes.url_img,
            attributes.options,
        )

    @classmethod
    def from_buyable(cls, item: Buyable, qty: Any = None) -> "LineItem":
        line_item = cls(
            item.id,
            item.name,
            item.subtitle,
            qty or getattr(item, "qty", None) or 1,
            item.price,
            item.total_price,
            item.vat,
            item.vat_fc_code,
            item.product_fc_code,
            item.url_img,
            item.options,
        )
        line_item.associate(item)
        return line_item

    @classmethod
    def from_mapping(cls, attributes: Mapping[str, Any]) -> "LineItem":
        missing = [key for key in ("id", "name", "qty", "price", "totalPrice", "vat") if key not in attributes]
        if missing:
            raise CartValidationError(f"Missing item attributes: {', '.join(missing)}")

        return cls(
            attributes["id"],
            attributes["name"],
            attributes.get("subtitle", ""),
            attributes["qty"],
            attributes["price"],
            attributes["totalPrice"],
            attributes["vat"],
            attributes.get("vatFcCode", ""),
            attributes.get("productFcCode", ""),
            attributes.get("urlImg", ""),
            attributes.get("options") or {},
        )

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any]) -> "LineItem":
        """Odtwarza wiersz dokladnie z rekordu to_dict() (sesja, store/restore)."""
        item = cls(
            data["id"],
            data["name"],
            data.get("subtitle", ""),
            data["qty"],
            data["originalPrice"],
            data["originalTotalPrice"],
            data["originalVat"],
            data.get("vatFcCode", ""),
            data.get("productFcCode", ""),
            data.get("urlImg", ""),
            data.get("options") or {},
        )
        item.price = to_decimal(data["price"], "price")
        item.total_price = to_decimal(data["totalPrice"], "total price")
        item.vat = to_decimal(data["vat"], "vat")
        item.vat_rate = to_decimal(data["vatRate"], "vat rate")
        item.vat_label = data.get("vatLabel", item.vat_label)
        item.discount_value = to_decimal(data.get("discountValue") or 0, "discount")
        item.associated_model = data.get("associatedModel")

        for code, coupon in (data.get("appliedCoupons") or {}).items():
            item.applied_coupons[code] = AppliedCoupon(
                coupon_code=coupon["couponCode"],
                coupon_type=coupon["couponType"],
                coupon_value=to_decimal(coupon["couponValue"], "coupon value"),
                discount_value=to_decimal(coupon["discountValue"], "discount"),
            )

        # rowId zawsze wyliczany, ale sprawdzamy zgodnosc z zapisanym
        if data.get("rowId") and data["rowId"] != item.row_id:
            raise CartValidationError(f"Snapshot rowId {data['rowId']} does not match item identity.")
        return item

    # ------------------------------------------------------------------
    # ilosc i aktualizacje
    # ------------------------------------------------------------------
    def set_quantity(self, qty: Any) -> None:
        value = coerce_quantity(qty)
        if value == 0:
            raise CartValidationError(f"Please supply a valid quantity. Provided: {qty}")
        self.qty = value

    def update_from_buyable(self, item: Buyable) -> None:
        self.update_from_mapping(
            {
                "id": item.id,
                "name": item.name,
                "subtitle": item.subtitle,
                "price": item.price,
                "totalPrice": item.total_price,
                "vat": item.vat,
            }
        )

    def update_from_mapping(self, attributes: Mapping[str, Any]) -> None:
        changes = {MAPPING_FIELDS[key]: value for key, value in attributes.items() if key in MAPPING_FIELDS}

        # najpierw walidacja wszystkiego, dopiero potem zapis,
        # blad nie moze zostawic wiersza w polowie zmienionego
        if "id" in changes and (changes["id"] is None or changes["id"] == ""):
            raise CartValidationError("Please supply a valid identifier.")
        if "name" in changes and not changes["name"]:
            raise CartValidationError("Please supply a valid name.")
        # qty <= 0 jest dozwolone tutaj, koszyk wtedy usuwa wiersz
        qty = coerce_quantity(changes["qty"]) if "qty" in changes else self.qty

        pricing = None
        if any(key in changes for key in _PRICING_FIELDS):
            pricing = self._validate_pricing(
                changes.get("price", self.original_price),
                changes.get("total_price", self.original_total_price),
                changes.get("vat", self.original_vat),
            )

        self.id = changes.get("id", self.id)
        self.name = changes.get("name", self.name)
        self.qty = qty
        for key in ("subtitle", "vat_fc_code", "product_fc_code", "url_img"):
            if key in changes:
                setattr(self, key, changes[key] or "")
        if "options" in changes:
            self.options = dict(changes["options"] or {})
        if pricing is not None:
            self._reprice(*pricing)

        self.row_id = generate_row_id(self.id, self.options)

    def associate(self, model: Any) -> "LineItem":
        if isinstance(model, str):
            self.associated_model = model
            self.model = None
        else:
            cls = type(model)
            self.associated_model = f"{cls.__module__}.{cls.__qualname__}"
            self.model = model
        return self

    # ------------------------------------------------------------------
    # kupony
    # ------------------------------------------------------------------
    def apply_coupon(self, coupon_code: str, coupon_type: str, coupon_value: Any) -> "LineItem":
        if coupon_type not in COUPON_TYPES:
            raise CartValidationError("Coupon type not handled. Possible values: fixed and percentage")
        return self._apply_discount(coupon_code, coupon_type, coupon_value)

    def _apply_global_discount(self, coupon_code: str, amount: Any) -> "LineItem":
        # kwota juz przeliczona przez koszyk, na wierszu dziala jak fixed
        return self._apply_discount(coupon_code, COUPON_GLOBAL, amount)

    def _apply_discount(self, coupon_code: str, coupon_type: str, coupon_value: Any) -> "LineItem":
        value = to_decimal(coupon_value, "coupon value")

        # ponowne nalozenie tego samego kodu nadpisuje poprzedni wpis
        if coupon_code in self.applied_coupons:
            self.detach_coupon(coupon_code)

        if coupon_type == COUPON_PERCENTAGE:
            discount = round2(self.total_price * value / HUNDRED)
        else:
            discount = round2(value)

        self.total_price = round2(self.total_price - discount)
        self._derive_price_and_vat()
        self.discount_value = round2(self.discount_value + discount)

        self.applied_coupons[coupon_code] = AppliedCoupon(
            coupon_code=coupon_code,
            coupon_type=coupon_type,
            coupon_value=value,
            discount_value=discount,
        )
        return self

    def detach_coupon(self, coupon_code: str) -> "LineItem":
        coupon = self.applied_coupons.pop(coupon_code, None)
        if coupon is None:
            raise CouponNotAppliedError(f"Coupon {coupon_code} is not applied to row {self.row_id}.")

        if not self.applied_coupons:
            # ostatni kupon zdjety, wracamy do stanu czystego
            self.price = self.original_price
            self.total_price = self.original_total_price
            self.vat = self.original_vat
            self.discount_value = ZERO
            return self

        self.total_price = round2(self.total_price + coupon.discount_value)
        self._derive_price_and_vat()
        self.discount_value = round2(self.discount_value - coupon.discount_value)
        return self

    def has_coupons(self) -> bool:
        return len(self.applied_coupons) > 0

    def get_coupon(self, coupon_code: str) -> AppliedCoupon | None:
        return self.applied_coupons.get(coupon_code)

    # ------------------------------------------------------------------
    # wartosci pochodne, zawsze liczone z pol
    # ------------------------------------------------------------------
    def line_total(self) -> Decimal:
        # rabat dotyczy tylko pierwszej sztuki, kolejne po cenie oryginalnej
        return self.total_price + (self.qty - 1) * self.original_total_price

    def line_vat(self) -> Decimal:
        return self.vat + (self.qty - 1) * self.original_vat

    def line_subtotal(self) -> Decimal:
        return self.price + (self.qty - 1) * self.original_price

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rowId": self.row_id,
            "id": self.id,
            "qty": self.qty,
            "name": self.name,
            "subtitle": self.subtitle,
            "originalPrice": self.original_price,
            "originalTotalPrice": self.original_total_price,
            "originalVat": self.original_vat,
            "price": self.price,
            "totalPrice": self.total_price,
            "vat": self.vat,
            "vatLabel": self.vat_label,
            "vatRate": self.vat_rate,
            "vatFcCode": self.vat_fc_code,
            "productFcCode": self.product_fc_code,
            "discountValue": self.discount_value,
            "urlImg": self.url_img,
            "options": dict(self.options),
            "associatedModel": self.associated_model,
            "model": self.model if isinstance(self.model, (dict, str, type(None))) else None,
            "appliedCoupons": {code: coupon.to_dict() for code, coupon in self.applied_coupons.items()},
        }

    # ------------------------------------------------------------------
    def _snapshot_pricing(self, price: Decimal, total_price: Decimal, vat: Decimal) -> None:
        self.original_price = price
        self.original_total_price = total_price
        self.original_vat = vat

        self.price = price
        self.total_price = total_price
        self.vat = vat

        self.vat_rate = round2(HUNDRED * vat / total_price) if total_price else ZERO
        self.vat_label = CART_VAT_INCLUDED_LABEL if vat > 0 else CART_VAT_EXEMPT_LABEL

    @staticmethod
    def _validate_pricing(price: Any, total_price: Any, vat: Any) -> tuple[Decimal, Decimal, Decimal]:
        price = to_decimal(price, "price")
        if price < 0:
            raise CartValidationError("Please supply a valid price.")
        return price, to_decimal(total_price, "total price"), to_decimal(vat, "vat")

    def _reprice(self, price: Decimal, total_price: Decimal, vat: Decimal) -> None:
        coupons = list(self.applied_coupons.values())
        self.applied_coupons = {}
        self.discount_value = ZERO
        self._snapshot_pricing(price, total_price, vat)

        # nowa cena bazowa, kupony nakladane ponownie w tej samej kolejnosci
        for coupon in coupons:
            self._apply_discount(coupon.coupon_code, coupon.coupon_type, coupon.coupon_value)

    def _derive_price_and_vat(self) -> None:
        self.price = round2(self.total_price * HUNDRED / (HUNDRED + self.vat_rate))
        self.vat = round2(self.price * self.vat_rate / HUNDRED)

    def __repr__(self) -> str:
        return f"LineItem(row_id={self.row_id!r}, id={self.id!r}, name={self.name!r}, qty={self.qty!r})"
