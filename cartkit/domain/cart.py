# cartkit/domain/cart.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Mapping

from cartkit.domain.errors import CartValidationError, InvalidRowIdError, UnknownModelError
from cartkit.domain.inputs import Buyable, ItemAttributes, ItemInput, is_batch
from cartkit.domain.line_item import (
    COUPON_FIXED,
    COUPON_GLOBAL,
    COUPON_PERCENTAGE,
    LineItem,
    coerce_quantity,
)
from cartkit.domain.money import HUNDRED, ZERO, number_format, round2, to_decimal
from cartkit.utils.settings import CART_VAT_EXEMPT_LABEL, CART_VAT_INCLUDED_LABEL

DISCOUNT_ITEM_NAME = "discountCartItem"

EventSink = Callable[[str, "LineItem | None"], None]
ModelResolver = Callable[[Any], Any]


@dataclass(frozen=True)
class CartCoupon:
    row_id: str
    coupon_code: str
    coupon_type: str
    coupon_value: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rowId": self.row_id,
            "couponCode": self.coupon_code,
            "couponType": self.coupon_type,
            "couponValue": self.coupon_value,
        }


def _no_events(event: str, item: LineItem | None) -> None:
    return None


class CartAggregate:
    """
    Zawartosc jednej instancji koszyka: uporzadkowane wiersze po rowId + opcje.

    Sumy i rejestr kuponow nie sa nigdzie przechowywane, kazde wywolanie
    total()/vat()/subtotal()/coupons() liczy je od nowa z wierszy.
    """

    def __init__(
        self,
        rows: Iterable[LineItem] | None = None,
        options: Mapping[str, Any] | None = None,
        events: EventSink | None = None,
        model_resolvers: Mapping[str, ModelResolver] | None = None,
    ):
        self.rows: Dict[str, LineItem] = {}
        for item in rows or []:
            self.rows[item.row_id] = item
        self.options: Dict[str, Any] = dict(options or {})
        self.events = events or _no_events
        self.model_resolvers: Dict[str, ModelResolver] = dict(model_resolvers or {})

    # =====================================================
    # COMMANDS
    # =====================================================
    def add(self, item: ItemInput | List[ItemInput], qty: Any = None) -> LineItem | List[LineItem]:
        if is_batch(item):
            for entry in item:
                self.add(entry)
            return self.content()

        line_item = self._create_line_item(item, qty)

        existing = self.rows.get(line_item.row_id)
        if existing is not None:
            # ten sam rowId -> zwiekszamy ilosc istniejacego wiersza
            existing.set_quantity(existing.qty + line_item.qty)
            line_item = existing
        else:
            self.rows[line_item.row_id] = line_item

        self.events("cart.added", line_item)
        return line_item

    def add_batch(self, items: Iterable[Mapping[str, Any]]) -> List[LineItem]:
        for attributes in items:
            self.add(dict(attributes))
        return self.content()

    def update(self, row_id: str, changes: Any) -> LineItem | None:
        line_item = self.get(row_id)

        if isinstance(changes, Mapping):
            line_item.update_from_mapping(changes)
        elif isinstance(changes, Buyable):
            line_item.update_from_buyable(changes)
        else:
            line_item.qty = coerce_quantity(changes)

        if row_id != line_item.row_id:
            self.rows.pop(row_id)

            merged = self.rows.get(line_item.row_id)
            if merged is not None:
                line_item.qty = coerce_quantity(merged.qty + line_item.qty)

        if line_item.qty <= 0:
            self._discard(line_item)
            return None

        self.rows[line_item.row_id] = line_item
        self.events("cart.updated", line_item)
        return line_item

    def remove(self, row_id: str) -> None:
        self._discard(self.get(row_id))

    def destroy(self) -> None:
        self.rows.clear()
        self.options.clear()

    def associate(self, row_id: str, model: Any) -> LineItem:
        if isinstance(model, str) and model not in self.model_resolvers:
            raise UnknownModelError(f"The supplied model {model} does not exist.")

        line_item = self.get(row_id)
        return line_item.associate(model)

    # =====================================================
    # QUERY
    # =====================================================
    def get(self, row_id: str) -> LineItem:
        line_item = self.rows.get(row_id)
        if line_item is None:
            raise InvalidRowIdError(f"The cart does not contain rowId {row_id}.")
        return line_item

    def content(self) -> List[LineItem]:
        return list(self.rows.values())

    def count(self) -> int | Decimal:
        return sum((item.qty for item in self.rows.values()), 0)

    def search(self, predicate: Callable[[LineItem], bool]) -> List[LineItem]:
        return [item for item in self.rows.values() if predicate(item)]

    def resolve_model(self, row_id: str) -> Any:
        line_item = self.get(row_id)
        if line_item.model is not None:
            return line_item.model

        resolver = self.model_resolvers.get(line_item.associated_model or "")
        if resolver is None:
            return None
        return resolver(line_item.id)

    def total(self, decimals=None, decimal_point=None, thousand_separator=None) -> Decimal | str:
        value = sum((item.line_total() for item in self.rows.values()), ZERO)
        return self._result(value, decimals, decimal_point, thousand_separator)

    def vat(self, decimals=None, decimal_point=None, thousand_separator=None) -> Decimal | str:
        value = sum((item.line_vat() for item in self.rows.values()), ZERO)
        return self._result(value, decimals, decimal_point, thousand_separator)

    def subtotal(self, decimals=None, decimal_point=None, thousand_separator=None) -> Decimal | str:
        value = sum(
            (item.line_subtotal() for item in self.rows.values() if item.name != DISCOUNT_ITEM_NAME),
            ZERO,
        )
        return self._result(value, decimals, decimal_point, thousand_separator)

    def original_total_price(self) -> Decimal:
        return sum((item.original_total_price for item in self.rows.values()), ZERO)

    def total_vat_label(self) -> str:
        return CART_VAT_INCLUDED_LABEL if self.vat() > 0 else CART_VAT_EXEMPT_LABEL

    # =====================================================
    # COUPONS
    # =====================================================
    def apply_coupon(
        self,
        row_id: str | None,
        coupon_code: str,
        coupon_type: str,
        coupon_value: Any,
    ) -> LineItem:
        if row_id is None:
            return self._apply_global_coupon(coupon_code, coupon_type, coupon_value)

        line_item = self.get(row_id)
        line_item.apply_coupon(coupon_code, coupon_type, coupon_value)
        return line_item

    def detach_coupon(self, row_id: str, coupon_code: str) -> LineItem:
        line_item = self.get(row_id)
        line_item.detach_coupon(coupon_code)

        if line_item.name == DISCOUNT_ITEM_NAME and not line_item.has_coupons():
            self.remove(line_item.row_id)
        return line_item

    def remove_coupon(self, coupon_code: str | None) -> None:
        if coupon_code is None:
            return
        coupon = self.get_coupon(coupon_code)
        if coupon is not None:
            self.detach_coupon(coupon.row_id, coupon_code)

    def coupons(self) -> Dict[str, CartCoupon]:
        coupons: Dict[str, CartCoupon] = {}
        for item in self.rows.values():
            for applied in item.applied_coupons.values():
                coupons[applied.coupon_code] = CartCoupon(
                    row_id=item.row_id,
                    coupon_code=applied.coupon_code,
                    coupon_type=applied.coupon_type,
                    coupon_value=applied.coupon_value,
                )
        return coupons

    def get_coupon(self, coupon_code: str) -> CartCoupon | None:
        return self.coupons().get(coupon_code)

    def has_coupons(self) -> bool:
        return len(self.coupons()) > 0

    def has_global_coupon(self) -> bool:
        return any(coupon.coupon_type == COUPON_GLOBAL for coupon in self.coupons().values())

    # =====================================================
    # OPTIONS
    # =====================================================
    def get_options(self) -> Dict[str, Any]:
        return dict(self.options)

    def set_options(self, options: Mapping[str, Any]) -> None:
        self.options = dict(options)

    def get_option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)

    # =====================================================
    # SNAPSHOT
    # =====================================================
    def to_snapshot(self) -> List[Dict[str, Any]]:
        return [item.to_dict() for item in self.rows.values()]

    @classmethod
    def from_snapshot(cls, snapshot: Iterable[Mapping[str, Any]] | None, **kwargs) -> "CartAggregate":
        return cls(rows=[LineItem.from_snapshot(data) for data in snapshot or []], **kwargs)

    # =====================================================
    def _create_line_item(self, item: Any, qty: Any) -> LineItem:
        # kolejnosc sprawdzen ma znaczenie: ItemAttributes spelnia tez protokol Buyable
        if isinstance(item, ItemAttributes):
            line_item = LineItem.from_attributes(item)
        elif isinstance(item, Mapping):
            line_item = LineItem.from_mapping(item)
        elif isinstance(item, Buyable):
            line_item = LineItem.from_buyable(item, qty)
        else:
            raise CartValidationError(f"Unsupported cart item input: {type(item).__name__}")

        line_item.set_quantity(line_item.qty if qty is None else qty)
        return line_item

    def _discard(self, line_item: LineItem) -> None:
        # najpierw zdejmujemy kupony, zeby rejestr kuponow nie mial wiszacych wpisow
        for coupon_code in list(line_item.applied_coupons):
            line_item.detach_coupon(coupon_code)

        self.rows.pop(line_item.row_id, None)
        self.events("cart.removed", line_item)

    def _apply_global_coupon(self, coupon_code: str, coupon_type: str, coupon_value: Any) -> LineItem:
        value = to_decimal(coupon_value, "coupon value")
        original_total = self.original_total_price()

        if coupon_type == COUPON_FIXED:
            discount = round2(value)
        elif coupon_type == COUPON_PERCENTAGE:
            discount = round2(original_total * value / HUNDRED)
        else:
            raise CartValidationError("Coupon type not handled. Possible values: fixed and percentage")

        discount_item = self._discount_item()
        if discount_item is None:
            discount_item = self.add(
                ItemAttributes(
                    id=DISCOUNT_ITEM_NAME,
                    name=DISCOUNT_ITEM_NAME,
                    subtitle="",
                    qty=1,
                    price=0,
                    total_price=0,
                    vat=0,
                )
            )
        else:
            # jeden globalny kupon na koszyk, poprzedni jest zastepowany
            for existing_code in list(discount_item.applied_coupons):
                discount_item.detach_coupon(existing_code)

        discount_item._apply_global_discount(coupon_code, discount)
        return discount_item

    def _discount_item(self) -> LineItem | None:
        for item in self.rows.values():
            if item.name == DISCOUNT_ITEM_NAME:
                return item
        return None

    @staticmethod
    def _result(value: Decimal, decimals, decimal_point, thousand_separator) -> Decimal | str:
        value = ZERO if value < 0 else round2(value)
        if decimals is None and decimal_point is None and thousand_separator is None:
            return value
        return number_format(value, decimals, decimal_point, thousand_separator)
