# cartkit/services/session_store.py
import json
from typing import Any, Dict, Protocol

import redis

from cartkit.utils.retry import redis_retry
from cartkit.utils.settings import REDIS_URL
from cartkit.utils.logging import get_logger

logger = get_logger(__name__)


def dumps(value: Any) -> str:
    # Decimal -> string, odczyt wraca przez to_decimal
    return json.dumps(value, default=str, separators=(",", ":"))


class SessionStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def put(self, key: str, value: Any) -> None: ...

    def has(self, key: str) -> bool: ...

    def remove(self, key: str) -> None: ...


class RedisSessionStore:
    """
    Stan koszyka w redisie, jeden klucz na instancje:
    -cart.<instance> -> lista wierszy
    -cart.<instance>_cart_info -> opcje koszyka
    """

    def __init__(self, url: str | None = None, prefix: str = "session", ttl: int | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.prefix = prefix
        self.ttl = ttl

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    @redis_retry()
    def get(self, key: str) -> Any | None:
        raw = self.redis.get(self._key(key))
        return None if raw is None else json.loads(raw)

    @redis_retry()
    def put(self, key: str, value: Any) -> None:
        logger.debug(f"Session put {self._key(key)}")
        self.redis.set(name=self._key(key), value=dumps(value), ex=self.ttl)

    @redis_retry()
    def has(self, key: str) -> bool:
        return bool(self.redis.exists(self._key(key)))

    @redis_retry()
    def remove(self, key: str) -> None:
        logger.debug(f"Session remove {self._key(key)}")
        self.redis.delete(self._key(key))


class MemorySessionStore:
    """Sesja w pamieci procesu (testy, tryb lokalny). Trzyma JSON jak redis."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def put(self, key: str, value: Any) -> None:
        self._data[key] = dumps(value)

    def has(self, key: str) -> bool:
        return key in self._data

    def remove(self, key: str) -> None:
        self._data.pop(key, None)
