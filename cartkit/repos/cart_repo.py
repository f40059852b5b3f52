# cartkit/repos/cart_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from cartkit.data.models.stored_cart import StoredCartModel


class CartRepo:
    """Zapis / odczyt zapamietanych koszykow (store/restore)."""

    def __init__(self, db: Session):
        self.db = db

    def exists(self, identifier: str) -> bool:
        return self.db.get(StoredCartModel, identifier) is not None

    def find(self, identifier: str) -> StoredCartModel | None:
        return self.db.execute(
            select(StoredCartModel).where(StoredCartModel.identifier == identifier)
        ).scalar_one_or_none()

    def insert(self, identifier: str, instance: str, content: str) -> StoredCartModel:
        stored = StoredCartModel(identifier=identifier, instance=instance, content=content)
        self.db.add(stored)
        self.db.commit()
        self.db.refresh(stored)
        return stored

    def delete(self, identifier: str) -> None:
        stored = self.find(identifier)
        if stored:
            self.db.delete(stored)
            self.db.commit()

    def rollback(self):
        self.db.rollback()
