from __future__ import annotations

from decimal import Decimal

import pytest

from cartkit.domain.cart import DISCOUNT_ITEM_NAME, CartAggregate, CartCoupon
from cartkit.domain.errors import CartValidationError, InvalidRowIdError


@pytest.fixture()
def cart() -> CartAggregate:
    return CartAggregate()


@pytest.fixture()
def row_id(cart, item_factory) -> str:
    return cart.add(item_factory()).row_id


def test_fixed_coupon_is_registered(cart, row_id):
    cart.apply_coupon(row_id, "BLACK_FRIDAY_FIXED_2021", "fixed", 100)

    assert cart.coupons() == {
        "BLACK_FRIDAY_FIXED_2021": CartCoupon(
            row_id=row_id,
            coupon_code="BLACK_FRIDAY_FIXED_2021",
            coupon_type="fixed",
            coupon_value=Decimal("100"),
        )
    }
    line_item = cart.get(row_id)
    assert line_item.price == Decimal("942.94")
    assert line_item.vat == Decimal("157.28")
    assert line_item.total_price == Decimal("1100.22")


def test_coupon_registry_collects_every_row(cart, row_id, item_factory):
    other = cart.add(item_factory(id=2)).row_id
    cart.apply_coupon(row_id, "BLACK_FRIDAY_PERCENTAGE_2021", "percentage", 50)
    cart.apply_coupon(other, "BLACK_FRIDAY_FIXED_2021", "fixed", 10)

    coupons = cart.coupons()

    assert set(coupons) == {"BLACK_FRIDAY_PERCENTAGE_2021", "BLACK_FRIDAY_FIXED_2021"}
    assert coupons["BLACK_FRIDAY_FIXED_2021"].row_id == other
    assert cart.get_coupon("BLACK_FRIDAY_PERCENTAGE_2021").coupon_value == Decimal("50")
    assert cart.get_coupon("UNKNOWN") is None


def test_detach_coupon(cart, row_id):
    cart.apply_coupon(row_id, "P50", "percentage", 50)
    assert cart.has_coupons()

    cart.detach_coupon(row_id, "P50")

    assert cart.coupons() == {}
    assert not cart.has_coupons()
    assert cart.get(row_id).total_price == Decimal("1200.22")


def test_coupon_on_unknown_row(cart, row_id):
    with pytest.raises(InvalidRowIdError):
        cart.apply_coupon("missing", "F10", "fixed", 10)
    with pytest.raises(InvalidRowIdError):
        cart.detach_coupon("missing", "F10")


def test_global_fixed_coupon(cart, row_id):
    discount_item = cart.apply_coupon(None, "GLOBAL100", "fixed", 100)

    assert discount_item.name == DISCOUNT_ITEM_NAME
    assert discount_item.qty == 1
    assert discount_item.original_total_price == Decimal("0")
    assert cart.has_global_coupon()
    assert cart.coupons()["GLOBAL100"].coupon_type == "global"
    assert cart.coupons()["GLOBAL100"].coupon_value == Decimal("100")

    assert cart.total() == Decimal("1100.22")
    assert cart.subtotal() == Decimal("1000.00")
    assert cart.vat() == Decimal("200.22")


def test_global_percentage_coupon_uses_original_totals(cart, row_id, item_factory):
    cart.apply_coupon(row_id, "P50", "percentage", 50)

    cart.apply_coupon(None, "GLOBAL10", "percentage", 10)

    assert cart.get_coupon("GLOBAL10").coupon_value == Decimal("120.02")
    assert cart.total() == Decimal("480.09")


def test_global_coupon_is_replaced_not_stacked(cart, row_id):
    cart.apply_coupon(None, "FIRST", "fixed", 100)
    cart.apply_coupon(None, "SECOND", "fixed", 50)

    discount_rows = cart.search(lambda item: item.name == DISCOUNT_ITEM_NAME)
    assert len(discount_rows) == 1
    assert set(cart.coupons()) == {"SECOND"}
    assert cart.total() == Decimal("1150.22")


def test_detaching_global_coupon_removes_discount_row(cart, row_id):
    discount_item = cart.apply_coupon(None, "GLOBAL100", "fixed", 100)

    cart.detach_coupon(discount_item.row_id, "GLOBAL100")

    assert not cart.has_global_coupon()
    assert [item.row_id for item in cart.content()] == [row_id]
    assert cart.total() == Decimal("1200.22")


def test_global_coupon_with_unsupported_type(cart, row_id):
    with pytest.raises(CartValidationError) as exc:
        cart.apply_coupon(None, "BOGUS", "bogus", 10)

    assert "fixed" in str(exc.value)
    assert cart.search(lambda item: item.name == DISCOUNT_ITEM_NAME) == []


def test_remove_coupon_by_code(cart, row_id):
    cart.apply_coupon(row_id, "F100", "fixed", 100)
    cart.apply_coupon(None, "GLOBAL", "fixed", 5)

    cart.remove_coupon("F100")
    cart.remove_coupon("GLOBAL")
    cart.remove_coupon("UNKNOWN")
    cart.remove_coupon(None)

    assert cart.coupons() == {}
    assert len(cart.content()) == 1


def test_removing_row_removes_its_coupons_only(cart, row_id, item_factory):
    other = cart.add(item_factory(id=2)).row_id
    cart.apply_coupon(row_id, "A", "fixed", 1)
    cart.apply_coupon(other, "B", "fixed", 1)

    cart.remove(row_id)

    assert set(cart.coupons()) == {"B"}


def test_global_type_is_rejected_on_a_regular_row(cart, row_id):
    with pytest.raises(CartValidationError) as exc:
        cart.apply_coupon(row_id, "SNEAKY", "global", 10)

    assert "fixed" in str(exc.value)
    assert not cart.has_coupons()
    assert not cart.has_global_coupon()
    assert cart.get(row_id).total_price == Decimal("1200.22")


def test_global_discount_row_survives_repricing_replay(cart, row_id):
    discount_item = cart.apply_coupon(None, "GLOBAL100", "fixed", 100)

    cart.update(discount_item.row_id, {"price": 0, "totalPrice": 0, "vat": 0})

    assert cart.get_coupon("GLOBAL100").coupon_type == "global"
    assert cart.total() == Decimal("1100.22")
