# cartkit/services/notification_service.py
import json
from typing import Any, Dict

from cartkit.celery_worker import celery_app
from cartkit.domain.line_item import LineItem
from cartkit.services.session_store import dumps
from cartkit.utils.logging import get_logger

logger = get_logger(__name__)

CART_EVENTS = (
    "cart.added",
    "cart.updated",
    "cart.removed",
    "cart.stored",
    "cart.restored",
)


class CartEventPublisher:
    """
    Sink zdarzen koszyka (fire-and-forget).
    Używa Celery do asynchronicznego przetwarzania, koszyk nie czeka na wynik.
    """

    def __init__(self, instance: str | None = None):
        self.instance = instance

    def __call__(self, event: str, item: LineItem | None = None) -> None:
        if event not in CART_EVENTS:
            raise ValueError(f"Unknown cart event {event}")

        # payload musi byc serializowalny w JSON dla brokera
        payload = None if item is None else json.loads(dumps(item.to_dict()))
        send_cart_event_task.delay(event, self.instance, payload)


@celery_app.task(name="cartkit.services.notification_service.send_cart_event_task")
def send_cart_event_task(event: str, instance: str | None, payload: Dict[str, Any] | None):
    """
    Celery task - w prawdziwym systemie np. webhook albo kolejka dla analityki.
    Teraz tylko loguje.
    """
    row_id = payload.get("rowId") if payload else None
    logger.info(f"[CART EVENT] {event} instance={instance} row={row_id}")

    return {"event": event, "instance": instance, "rowId": row_id, "status": "sent"}
