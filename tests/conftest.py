from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cartkit.data import models  # noqa: F401
from cartkit.data.database import Base
from cartkit.domain.inputs import ItemAttributes
from cartkit.services.cart_service import CartService
from cartkit.services.product_client import ProductBuyable
from cartkit.services.session_store import MemorySessionStore

PRODUCTS = {
    1: {"id": 1, "name": "Keyboard", "subtitle": "Mechanical", "price": "163.93", "totalPrice": "199.99", "vat": "36.06"},
    2: {"id": 2, "name": "Mouse", "subtitle": "Wireless", "price": "40.57", "totalPrice": "49.50", "vat": "8.93"},
}


class EventRecorder:
    def __init__(self):
        self.events: list[tuple[str, str | None]] = []

    def __call__(self, event, item=None):
        self.events.append((event, item.row_id if item is not None else None))

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.events]


class FakeProductClient:
    def __init__(self, products=None):
        self.products = products if products is not None else PRODUCTS
        self.calls: list = []

    def fetch_product(self, product_id):
        self.calls.append(product_id)
        return self.products[int(product_id)]

    def fetch_buyable(self, product_id, options=None):
        return ProductBuyable.from_record(self.fetch_product(product_id), options)


def make_item(**overrides) -> ItemAttributes:
    attrs = dict(
        id=1,
        name="First Cart item",
        subtitle="This is a simple description",
        qty=1,
        price=Decimal("1000.00"),
        total_price=Decimal("1200.22"),
        vat=Decimal("200.22"),
        vat_fc_code="0",
        product_fc_code="10",
        url_img="https://ecommerce.test/images/item-name.png",
        options={},
    )
    attrs.update(overrides)
    return ItemAttributes(**attrs)


@pytest.fixture()
def item_factory():
    return make_item


@pytest.fixture()
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture()
def db_engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db(db_engine):
    TestSessionLocal = sessionmaker(bind=db_engine, autoflush=False, autocommit=False, expire_on_commit=False)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def session_store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture()
def product_client() -> FakeProductClient:
    return FakeProductClient()


@pytest.fixture()
def service(session_store, db, recorder, product_client) -> CartService:
    return CartService(
        session_store=session_store,
        db=db,
        events=recorder,
        product_client=product_client,
    )


@pytest.fixture()
def client(db, session_store, recorder, product_client):
    from cartkit.api import create_app
    from cartkit.api.routers import carts
    from cartkit.data.database import get_db

    app = create_app()

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[carts.get_session_store] = lambda: session_store
    app.dependency_overrides[carts.get_product_client] = lambda: product_client
    app.dependency_overrides[carts.get_event_sink] = lambda: (lambda instance: recorder)

    with TestClient(app) as c:
        yield c
