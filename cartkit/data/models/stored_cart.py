# cartkit/data/models/stored_cart.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text

from cartkit.data.database import Base
from cartkit.utils.settings import CART_TABLE


class StoredCartModel(Base):
    __tablename__ = CART_TABLE

    identifier = Column(String, primary_key=True)
    instance = Column(String, nullable=False)
    # zserializowana zawartosc koszyka (lista rekordow LineItem w JSON)
    content = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
