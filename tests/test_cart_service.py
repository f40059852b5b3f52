from __future__ import annotations

from decimal import Decimal

import pytest

from cartkit.domain.errors import CartAlreadyStoredError, CartValidationError, InvalidRowIdError
from cartkit.repos.cart_repo import CartRepo
from cartkit.services.cart_service import CartService


def test_cart_state_lives_in_session_store(service, session_store, item_factory):
    line_item = service.add(item_factory())

    assert session_store.has("cart.default")

    fresh = CartService(session_store=session_store)
    assert fresh.get(line_item.row_id).name == "First Cart item"
    assert fresh.total() == Decimal("1200.22")


def test_instances_are_isolated(service, item_factory):
    service.add(item_factory())
    service.instance("wishlist").add(item_factory(id=2))

    assert service.current_instance() == "wishlist"
    assert [item.id for item in service.content()] == [2]
    assert [item.id for item in service.instance("default").content()] == [1]


def test_instance_defaults_to_default(service):
    assert service.instance(None).current_instance() == "default"


def test_coupon_state_survives_reload(service, item_factory):
    row_id = service.add(item_factory()).row_id

    service.apply_coupon(row_id, "F100", "fixed", 100)

    assert service.get(row_id).total_price == Decimal("1100.22")
    assert service.has_coupons()
    assert service.get_coupon("F100").row_id == row_id

    service.detach_coupon(row_id, "F100")
    assert not service.has_coupons()
    assert service.get(row_id).price == Decimal("1000.00")


def test_global_coupon_through_service(service, item_factory):
    service.add(item_factory())

    service.apply_coupon(None, "GLOBAL", "percentage", 10)
    assert service.has_global_coupon()
    assert service.total() == Decimal("1080.20")

    service.remove_coupon("GLOBAL")
    assert not service.has_global_coupon()
    assert service.count() == 1


def test_update_and_remove(service, item_factory, recorder):
    row_id = service.add(item_factory()).row_id

    service.update(row_id, 3)
    assert service.count() == 3

    assert service.update(row_id, 0) is None
    assert service.content() == []

    with pytest.raises(InvalidRowIdError):
        service.remove(row_id)

    assert recorder.names == ["cart.added", "cart.updated", "cart.removed"]


def test_add_batch(service):
    content = service.add_batch(
        [
            {"id": 1, "name": "One", "qty": 1, "price": 10, "totalPrice": "12.22", "vat": "2.22"},
            {"id": 1, "name": "One", "qty": 2, "price": 10, "totalPrice": "12.22", "vat": "2.22"},
        ]
    )

    assert len(content) == 1
    assert service.count() == 3


def test_options_stored_separately(service, session_store, item_factory):
    service.add(item_factory())
    service.set_options({"test": "test"})

    assert session_store.get("cart.default_cart_info") == {"options": {"test": "test"}}
    assert service.get_options() == {"test": "test"}
    assert service.get_option("test") == "test"
    assert service.get_option("missing", "fallback") == "fallback"
    assert len(service.content()) == 1


def test_destroy(service, session_store, item_factory):
    service.add(item_factory())
    service.set_options({"test": "test"})

    service.destroy()

    assert service.content() == []
    assert service.get_options() == {}
    assert not session_store.has("cart.default")


def test_store_and_conflict(service, db, recorder, item_factory):
    service.add(item_factory(qty=3))

    service.store("user-1")

    assert CartRepo(db).exists("user-1")
    assert recorder.names[-1] == "cart.stored"

    with pytest.raises(CartAlreadyStoredError):
        service.store("user-1")


def test_restore(service, db, recorder, item_factory):
    row_id = service.add(item_factory(qty=3)).row_id
    service.apply_coupon(row_id, "F100", "fixed", 100)
    service.store("user-1")
    service.destroy()
    assert service.content() == []

    service.restore("user-1")

    restored = service.get(row_id)
    assert restored.qty == 3
    assert restored.total_price == Decimal("1100.22")
    assert service.has_coupons()
    assert not CartRepo(db).exists("user-1")
    assert recorder.names[-1] == "cart.restored"


def test_restore_goes_to_stored_instance(service, item_factory):
    service.instance("wishlist").add(item_factory())
    service.store("user-1")
    service.destroy()

    service.instance("default").restore("user-1")

    assert service.current_instance() == "default"
    assert service.content() == []
    assert len(service.instance("wishlist").content()) == 1


def test_restore_unknown_identifier_is_noop(service, recorder, item_factory):
    service.add(item_factory())

    service.restore("nobody")

    assert len(service.content()) == 1
    assert "cart.restored" not in recorder.names


def test_store_requires_persistence(session_store):
    svc = CartService(session_store=session_store)

    with pytest.raises(RuntimeError):
        svc.store("user-1")


def test_add_product_associates_product_model(service, product_client):
    line_item = service.add_product(1, 2)

    assert line_item.qty == 2
    assert line_item.total_price == Decimal("199.99")

    stored = service.get(line_item.row_id)
    assert stored.associated_model == "product"
    assert service.resolve_model(line_item.row_id)["name"] == "Keyboard"
    assert product_client.calls == [1, 1]


def test_add_product_without_client(session_store):
    svc = CartService(session_store=session_store)

    with pytest.raises(RuntimeError):
        svc.add_product(1)


def test_summary(service, item_factory):
    row_id = service.add(item_factory()).row_id
    service.apply_coupon(row_id, "F100", "fixed", 100)

    summary = service.summary()

    assert summary["instance"] == "default"
    assert summary["total"] == Decimal("1100.22")
    assert summary["subtotal"] == Decimal("942.94")
    assert summary["vat"] == Decimal("157.28")
    assert summary["vat_label"] == "Iva Inclusa"
    assert summary["coupons"]["F100"]["rowId"] == row_id
    assert summary["items"][0]["rowId"] == row_id


class FailingSink:
    def __init__(self):
        self.calls = 0

    def __call__(self, event, item=None):
        self.calls += 1
        raise ConnectionError("broker down")


def test_failing_event_sink_does_not_lose_mutations(session_store, db, item_factory):
    sink = FailingSink()
    svc = CartService(session_store=session_store, db=db, events=sink)

    row_id = svc.add(item_factory()).row_id
    svc.update(row_id, 2)

    fresh = CartService(session_store=session_store)
    assert fresh.get(row_id).qty == 2
    assert sink.calls == 2


def test_failing_event_sink_does_not_block_restore(session_store, db, item_factory):
    svc = CartService(session_store=session_store, db=db, events=FailingSink())
    svc.add(item_factory())
    svc.store("user-1")
    svc.destroy()

    svc.restore("user-1")

    assert len(svc.content()) == 1
    assert not CartRepo(db).exists("user-1")


def test_events_are_published_after_save(session_store, item_factory):
    seen = []

    def sink(event, item=None):
        seen.append((event, session_store.has("cart.default")))

    CartService(session_store=session_store, events=sink).add(item_factory())

    assert seen == [("cart.added", True)]


def test_events_of_failed_operation_are_dropped(service, recorder, item_factory):
    row_id = service.add(item_factory()).row_id

    with pytest.raises(CartValidationError):
        service.add_batch(
            [
                {"id": 2, "name": "Two", "qty": 1, "price": 10, "totalPrice": "12.22", "vat": "2.22"},
                {"id": 3, "name": "Broken"},
            ]
        )
    service.update(row_id, 2)

    assert recorder.names == ["cart.added", "cart.updated"]
    assert len(service.content()) == 1
