# cartkit/domain/inputs.py
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping, Protocol, Union, runtime_checkable


@runtime_checkable
class Buyable(Protocol):
    """Obiekt ktory mozna wrzucic do koszyka (np. produkt z katalogu)."""

    id: Any
    name: str
    subtitle: str
    qty: int
    price: Decimal
    total_price: Decimal
    vat: Decimal
    vat_fc_code: str
    product_fc_code: str
    url_img: str
    options: dict


@dataclass
class ItemAttributes:
    id: Any
    name: str
    subtitle: str
    qty: Any
    price: Any
    total_price: Any
    vat: Any
    vat_fc_code: str = ""
    product_fc_code: str = ""
    url_img: str = ""
    options: dict = field(default_factory=dict)


# trzy warianty wejscia dla add/update: atrybuty, Buyable, luzny slownik
ItemInput = Union[ItemAttributes, Buyable, Mapping[str, Any]]

# klucze slownika wejsciowego sa takie same jak w rekordzie wyjsciowym LineItem
MAPPING_FIELDS = {
    "id": "id",
    "name": "name",
    "subtitle": "subtitle",
    "qty": "qty",
    "price": "price",
    "totalPrice": "total_price",
    "vat": "vat",
    "vatFcCode": "vat_fc_code",
    "productFcCode": "product_fc_code",
    "urlImg": "url_img",
    "options": "options",
}


def is_batch(item: Any) -> bool:
    return isinstance(item, (list, tuple))
