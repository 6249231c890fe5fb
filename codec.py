"""
Array fields (technologies, features, tags) are stored as a JSON array in a
single text column and handed to callers as a list of strings.
"""
import json
import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

logger = logging.getLogger(__name__)


class DecodePolicy(str, Enum):
    LENIENT = "lenient"   # corrupt value -> [] plus a warning
    STRICT = "strict"     # corrupt value -> CorruptArrayField


class CorruptArrayField(ValueError):
    pass


def encode(value: Any) -> str:
    """List of strings -> compact JSON array.

    A string is taken as already encoded and kept as is, provided it holds
    a JSON array of strings.
    """
    if isinstance(value, str):
        try:
            decode(value, DecodePolicy.STRICT)
        except CorruptArrayField as exc:
            raise TypeError("string is not a JSON array of strings") from exc
        return value
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"expected a list of strings, got {type(value).__name__}")
    for item in value:
        if not isinstance(item, str):
            raise TypeError(f"array items must be strings, got {type(item).__name__}")
    return json.dumps(list(value), separators=(",", ":"), ensure_ascii=False)


def decode(text: Optional[str], policy: DecodePolicy = DecodePolicy.LENIENT) -> List[str]:
    if text is None:
        return []
    try:
        value = json.loads(text)
    except (TypeError, ValueError) as exc:
        return _corrupt(text, f"invalid JSON ({exc})", policy)
    if not isinstance(value, list):
        return _corrupt(text, "not a JSON array", policy)
    if not all(isinstance(item, str) for item in value):
        return _corrupt(text, "array holds non-string items", policy)
    return value


def decode_fields(record: Mapping[str, Any], fields: Iterable[str],
                  policy: DecodePolicy = DecodePolicy.LENIENT) -> Dict[str, Any]:
    out = dict(record)
    for field in fields:
        out[field] = decode(out.get(field), policy)
    return out


def _corrupt(text, reason: str, policy: DecodePolicy) -> List[str]:
    if policy == DecodePolicy.STRICT:
        raise CorruptArrayField(f"stored array value is corrupt: {reason}")
    logger.warning("Ignoring corrupt array value %.60r: %s", text, reason)
    return []
