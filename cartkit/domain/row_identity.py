# cartkit/domain/row_identity.py
import json
from decimal import Decimal
from hashlib import md5
from typing import Any, Mapping


def _normalize(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(k): _normalize(v) for k, v in sorted(value.items(), key=lambda kv: str(kv[0]))}
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    if isinstance(value, Decimal):
        return format(value, "f")
    return value


def generate_row_id(identifier: Any, options: Mapping[str, Any] | None = None) -> str:
    """
    Stabilny identyfikator wiersza: md5(id + opcje posortowane po kluczach).
    Ta sama para (id, opcje) zawsze daje ten sam rowId, niezaleznie od kolejnosci opcji.
    """
    serialized = json.dumps(
        _normalize(options or {}),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
        default=str,
    )
    return md5(f"{identifier}{serialized}".encode("utf-8")).hexdigest()
