# cartkit/services/cart_service.py
import json
from decimal import Decimal
from typing import Any, Callable, Dict, List, Tuple

from sqlalchemy.orm import Session

from cartkit.domain.cart import CartAggregate, CartCoupon, EventSink
from cartkit.domain.errors import CartAlreadyStoredError
from cartkit.domain.line_item import LineItem
from cartkit.repos.cart_repo import CartRepo
from cartkit.services.product_client import ProductClient
from cartkit.services.session_store import SessionStore, dumps
from cartkit.utils.settings import CART_DEFAULT_INSTANCE
from cartkit.utils.logging import get_logger

logger = get_logger(__name__)

CART_INFO_OPTIONS_KEY = "options"


def _no_events(event: str, item: LineItem | None) -> None:
    return None


class CartService:
    """
    Use case'y koszyka dla jednej nazwanej instancji.
    Kazda komenda: odczyt CartAggregate z sesji -> operacja -> zapis do sesji.
    Zapytania (total, coupons, content) tylko czytaja.
    """

    def __init__(
        self,
        session_store: SessionStore,
        db: Session | None = None,
        events: EventSink | None = None,
        product_client: ProductClient | None = None,
        instance: str | None = None,
    ):
        self.session = session_store
        self.repo = CartRepo(db) if db is not None else None
        self.events = events or _no_events
        self.product_client = product_client
        self._pending: List[Tuple[str, LineItem | None]] = []
        self.instance(instance)

    # =====================================================
    # INSTANCJE
    # =====================================================
    def instance(self, instance: str | None = None) -> "CartService":
        self._instance = instance or CART_DEFAULT_INSTANCE
        return self

    def current_instance(self) -> str:
        return self._instance

    @property
    def session_key(self) -> str:
        return f"cart.{self._instance}"

    @property
    def info_key(self) -> str:
        return f"{self.session_key}_cart_info"

    def load(self) -> CartAggregate:
        info = self.session.get(self.info_key) or {}
        resolvers: Dict[str, Callable[[Any], Any]] = {}
        if self.product_client is not None:
            resolvers["product"] = self.product_client.fetch_product

        # zdarzenia z nieudanej operacji nie moga wyciec do nastepnej
        self._pending = []
        return CartAggregate.from_snapshot(
            self.session.get(self.session_key),
            options=info.get(CART_INFO_OPTIONS_KEY),
            events=self._queue_event,
            model_resolvers=resolvers,
        )

    def _save(self, cart: CartAggregate) -> None:
        self.session.put(self.session_key, cart.to_snapshot())

    def _queue_event(self, event: str, item: LineItem | None = None) -> None:
        self._pending.append((event, item))

    def _publish(self) -> None:
        """
        Wysyla zdarzenia zebrane podczas operacji, dopiero po zapisie stanu.
        Blad sinka tylko logujemy, zmiana w koszyku juz jest zapisana.
        """
        pending, self._pending = self._pending, []
        for event, item in pending:
            try:
                self.events(event, item)
            except Exception as e:
                logger.warning(f"Nie udalo sie wyslac zdarzenia {event} koszyka {self._instance}: {e}")

    def _save_options(self, cart: CartAggregate) -> None:
        info = self.session.get(self.info_key) or {}
        info[CART_INFO_OPTIONS_KEY] = cart.get_options()
        self.session.put(self.info_key, info)

    # =====================================================
    # COMMANDS
    # =====================================================
    def add(self, item: Any, qty: Any = None):
        cart = self.load()
        result = cart.add(item, qty)
        self._save(cart)
        self._publish()

        if isinstance(result, list):
            logger.info(f"Dodano {len(result)} wierszy do koszyka {self._instance}")
        else:
            logger.info(f"Dodano {result.row_id} do koszyka {self._instance}, ilosc {result.qty}")
        return result

    def add_batch(self, items: List[Dict[str, Any]]) -> List[LineItem]:
        cart = self.load()
        content = cart.add_batch(items)
        self._save(cart)
        self._publish()
        return content

    def add_product(self, product_id: Any, qty: Any = 1, options: Dict[str, Any] | None = None) -> LineItem:
        if self.product_client is None:
            raise RuntimeError("Product client is not configured")

        logger.info(f"Pobieranie danych produktu {product_id} z product-service")
        buyable = self.product_client.fetch_buyable(product_id, options)

        cart = self.load()
        line_item = cart.add(buyable, qty)
        cart.associate(line_item.row_id, "product")
        self._save(cart)
        self._publish()
        return line_item

    def update(self, row_id: str, changes: Any) -> LineItem | None:
        cart = self.load()
        line_item = cart.update(row_id, changes)
        self._save(cart)
        self._publish()

        if line_item is None:
            logger.info(f"Wiersz {row_id} usuniety z koszyka {self._instance} (ilosc <= 0)")
        return line_item

    def remove(self, row_id: str) -> None:
        cart = self.load()
        cart.remove(row_id)
        self._save(cart)
        self._publish()
        logger.info(f"Usunieto {row_id} z koszyka {self._instance}")

    def associate(self, row_id: str, model: Any) -> LineItem:
        cart = self.load()
        line_item = cart.associate(row_id, model)
        self._save(cart)
        self._publish()
        return line_item

    def apply_coupon(self, row_id: str | None, coupon_code: str, coupon_type: str, coupon_value: Any) -> LineItem:
        cart = self.load()
        line_item = cart.apply_coupon(row_id, coupon_code, coupon_type, coupon_value)
        self._save(cart)
        self._publish()

        logger.info(
            f"Kupon {coupon_code} ({coupon_type} {coupon_value}) nalozony na {line_item.row_id}, "
            f"rabat {line_item.get_coupon(coupon_code).discount_value}"
        )
        return line_item

    def detach_coupon(self, row_id: str, coupon_code: str) -> LineItem:
        cart = self.load()
        line_item = cart.detach_coupon(row_id, coupon_code)
        self._save(cart)
        self._publish()
        logger.info(f"Kupon {coupon_code} zdjety z {row_id}")
        return line_item

    def remove_coupon(self, coupon_code: str | None) -> None:
        cart = self.load()
        cart.remove_coupon(coupon_code)
        self._save(cart)
        self._publish()

    def set_options(self, options: Dict[str, Any]) -> None:
        cart = self.load()
        cart.set_options(options)
        self._save_options(cart)

    def destroy(self) -> None:
        self.set_options({})
        self.session.remove(self.session_key)
        logger.info(f"Koszyk {self._instance} zniszczony")

    def store(self, identifier: str) -> None:
        repo = self._require_repo()

        if repo.exists(identifier):
            raise CartAlreadyStoredError(f"A cart with identifier {identifier} was already stored.")

        cart = self.load()
        repo.insert(identifier, self._instance, dumps(cart.to_snapshot()))
        self._queue_event("cart.stored")
        self._publish()

        logger.info(f"Koszyk {self._instance} zapisany jako {identifier}")

    def restore(self, identifier: str) -> None:
        repo = self._require_repo()

        # brak zapisanego koszyka to nie blad, nic nie robimy
        stored = repo.find(identifier)
        if stored is None:
            return

        current = self._instance
        self.instance(stored.instance)
        try:
            cart = self.load()
            for data in json.loads(stored.content):
                item = LineItem.from_snapshot(data)
                cart.rows[item.row_id] = item
            self._save(cart)
            self._queue_event("cart.restored")
        finally:
            self.instance(current)

        repo.delete(identifier)
        self._publish()
        logger.info(f"Koszyk {identifier} przywrocony do instancji {stored.instance}")

    # =====================================================
    # QUERY
    # =====================================================
    def get(self, row_id: str) -> LineItem:
        return self.load().get(row_id)

    def content(self) -> List[LineItem]:
        return self.load().content()

    def count(self):
        return self.load().count()

    def search(self, predicate: Callable[[LineItem], bool]) -> List[LineItem]:
        return self.load().search(predicate)

    def resolve_model(self, row_id: str) -> Any:
        return self.load().resolve_model(row_id)

    def total(self, decimals=None, decimal_point=None, thousand_separator=None) -> Decimal | str:
        return self.load().total(decimals, decimal_point, thousand_separator)

    def vat(self, decimals=None, decimal_point=None, thousand_separator=None) -> Decimal | str:
        return self.load().vat(decimals, decimal_point, thousand_separator)

    def subtotal(self, decimals=None, decimal_point=None, thousand_separator=None) -> Decimal | str:
        return self.load().subtotal(decimals, decimal_point, thousand_separator)

    def coupons(self) -> Dict[str, CartCoupon]:
        return self.load().coupons()

    def get_coupon(self, coupon_code: str) -> CartCoupon | None:
        return self.load().get_coupon(coupon_code)

    def has_coupons(self) -> bool:
        return self.load().has_coupons()

    def has_global_coupon(self) -> bool:
        return self.load().has_global_coupon()

    def get_options(self) -> Dict[str, Any]:
        return self.load().get_options()

    def get_option(self, key: str, default: Any = None) -> Any:
        return self.load().get_option(key, default)

    def summary(self) -> Dict[str, Any]:
        cart = self.load()

        #dict przyksztalcany w jsona
        return {
            "instance": self._instance,
            "items": [item.to_dict() for item in cart.content()],
            "count": cart.count(),
            "subtotal": cart.subtotal(),
            "vat": cart.vat(),
            "total": cart.total(),
            "vat_label": cart.total_vat_label(),
            "coupons": {code: coupon.to_dict() for code, coupon in cart.coupons().items()},
            "options": cart.get_options(),
        }

    def _require_repo(self) -> CartRepo:
        if self.repo is None:
            raise RuntimeError("Cart persistence is not configured")
        return self.repo
