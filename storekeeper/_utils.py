import logging
import re
from typing import Any, Iterable, Iterator, List, Optional, TypeVar

logger = logging.getLogger("storekeeper")

T = TypeVar("T")

_DIGIT_RUN = re.compile(r"\d+")


def parse_identifier(value: Any) -> Optional[int]:
    """Return the first contiguous run of decimal digits in ``value`` as an int.

    ``None``, empty strings and values without any digit yield ``None``.
    Booleans are not identifiers.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return abs(value)
    match = _DIGIT_RUN.search(str(value))
    if not match:
        return None
    return int(match.group(0))


def get_field(fields: Optional[dict], path: str) -> Any:
    """Resolve a dotted path (``orderDetails.billInvoice``) inside a field map."""
    current: Any = fields
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def chunked(items: List[T], size: int) -> Iterator[List[T]]:
    """Split ``items`` into consecutive lists of at most ``size`` elements."""
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield items[start:start + size]


def unique_preserving_order(values: Iterable[T]) -> List[T]:
    seen = set()
    result = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result
