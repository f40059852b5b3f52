#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from cartkit.data.models.stored_cart import StoredCartModel

__all__ = ["StoredCartModel"]
