#cartkit/api/routers/carts.py
from functools import lru_cache

import requests
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from cartkit.data.database import get_db
from cartkit.domain.errors import (
    CartAlreadyStoredError,
    CartValidationError,
    CouponNotAppliedError,
    InvalidRowIdError,
    UnknownModelError,
)
from cartkit.domain.schemas import (
    CartOut,
    CouponIn,
    ItemIn,
    ItemUpdateIn,
    OptionsIn,
    ProductIn,
)
from cartkit.services.cart_service import CartService
from cartkit.services.notification_service import CartEventPublisher
from cartkit.services.product_client import ProductClient
from cartkit.services.session_store import RedisSessionStore, SessionStore

router = APIRouter(prefix="/carts", tags=["carts"])


@lru_cache(maxsize=1)
def get_session_store() -> SessionStore:
    return RedisSessionStore()


def get_product_client() -> ProductClient:
    return ProductClient()


def get_event_sink():
    return CartEventPublisher


def get_service(
    instance: str,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    product_client: ProductClient = Depends(get_product_client),
    event_sink=Depends(get_event_sink),
) -> CartService:
    return CartService(
        session_store=store,
        db=db,
        events=event_sink(instance),
        product_client=product_client,
        instance=instance,
    )


def _handle(call):
    try:
        return call()
    except (InvalidRowIdError, CouponNotAppliedError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CartAlreadyStoredError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (CartValidationError, UnknownModelError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    except requests.RequestException as e:
        raise HTTPException(status_code=502, detail=f"Product service error: {e}")


@router.get("/{instance}", response_model=CartOut)
def get_cart(svc: CartService = Depends(get_service)):
    return svc.summary()


@router.post("/{instance}/items", response_model=CartOut)
def add_item(payload: ItemIn, svc: CartService = Depends(get_service)):
    _handle(lambda: svc.add(payload.to_attributes()))
    return svc.summary()


@router.post("/{instance}/products/{product_id}", response_model=CartOut)
def add_product(product_id: int, payload: ProductIn, svc: CartService = Depends(get_service)):
    _handle(lambda: svc.add_product(product_id, payload.qty, payload.options))
    return svc.summary()


@router.patch("/{instance}/items/{row_id}", response_model=CartOut)
def update_item(row_id: str, payload: ItemUpdateIn, svc: CartService = Depends(get_service)):
    _handle(lambda: svc.update(row_id, payload.to_changes()))
    return svc.summary()


@router.delete("/{instance}/items/{row_id}", response_model=CartOut)
def remove_item(row_id: str, svc: CartService = Depends(get_service)):
    _handle(lambda: svc.remove(row_id))
    return svc.summary()


@router.post("/{instance}/coupons", response_model=CartOut)
def apply_coupon(payload: CouponIn, svc: CartService = Depends(get_service)):
    _handle(
        lambda: svc.apply_coupon(
            payload.row_id,
            payload.coupon_code,
            payload.coupon_type,
            payload.coupon_value,
        )
    )
    return svc.summary()


@router.delete("/{instance}/coupons/{coupon_code}", response_model=CartOut)
def remove_coupon(coupon_code: str, svc: CartService = Depends(get_service)):
    if svc.get_coupon(coupon_code) is None:
        raise HTTPException(status_code=404, detail=f"Coupon {coupon_code} not found")
    _handle(lambda: svc.remove_coupon(coupon_code))
    return svc.summary()


@router.put("/{instance}/options", response_model=CartOut)
def set_options(payload: OptionsIn, svc: CartService = Depends(get_service)):
    svc.set_options(payload.options)
    return svc.summary()


@router.delete("/{instance}", status_code=204)
def destroy_cart(svc: CartService = Depends(get_service)):
    svc.destroy()
    return Response(status_code=204)


@router.post("/{instance}/store/{identifier}", status_code=201)
def store_cart(identifier: str, svc: CartService = Depends(get_service)):
    _handle(lambda: svc.store(identifier))
    return {"identifier": identifier, "instance": svc.current_instance()}


@router.post("/restore/{identifier}", status_code=204)
def restore_cart(
    identifier: str,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    event_sink=Depends(get_event_sink),
):
    # restore wraca do instancji zapisanej w bazie, nie do tej z URL
    svc = CartService(session_store=store, db=db, events=event_sink(None))
    svc.restore(identifier)
    return Response(status_code=204)
