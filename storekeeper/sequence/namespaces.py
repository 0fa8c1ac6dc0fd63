"""Identifier namespaces shared across independently-written collections."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from .._utils import get_field, parse_identifier
from .models import Identifier


@dataclass(frozen=True)
class IdentifierSource:
    """An identifier-bearing field of one collection.

    ``fields`` are dotted paths tried in order; the first non-empty value wins.
    """
    collection: str
    fields: Tuple[str, ...]

    def read(self, document_fields: Optional[dict]) -> Any:
        for path in self.fields:
            value = get_field(document_fields, path)
            if value not in (None, ""):
                return value
        return None


@dataclass(frozen=True)
class Namespace:
    name: str
    start: int
    floor: int
    sources: Tuple[IdentifierSource, ...]
    prefix: str = ""
    width: int = 0

    def __post_init__(self):
        if self.start <= self.floor:
            raise ValueError(f"start ({self.start}) must be greater than floor ({self.floor})")
        if not self.sources:
            raise ValueError(f"namespace {self.name} needs at least one source collection")

    @property
    def collections(self) -> Tuple[str, ...]:
        seen = []
        for source in self.sources:
            if source.collection not in seen:
                seen.append(source.collection)
        return tuple(seen)

    def extract(self, raw: Any) -> Optional[int]:
        """Parse ``raw`` if it has this namespace's shape, else return None.

        Prefixed namespaces require the prefix (case-insensitive) and accept
        under-padded digits, which are re-padded on formatting. Values wider
        than ``width`` do not fit the shape. Bare namespaces require the value
        to start with a digit, so prefixed identifiers of another namespace
        are not counted here.
        """
        if raw is None or isinstance(raw, bool):
            return None

        if self.prefix:
            text = str(raw).strip()
            if not text.upper().startswith(self.prefix.upper()):
                return None
            digits = text[len(self.prefix):]
            if not digits[:1].isdigit():
                return None
            value = parse_identifier(digits)
        else:
            if isinstance(raw, int):
                return raw if raw >= 0 else None
            text = str(raw).strip()
            if not text[:1].isdigit():
                return None
            value = parse_identifier(text)

        if value is None:
            return None
        if not self.fits(value):
            return None
        return value

    def claims(self, raw: Any) -> bool:
        """True if ``raw`` is marked as belonging to this namespace.

        Prefixed namespaces match on the prefix alone, so malformed values such
        as ``T-ABC`` are claimed even though ``extract`` cannot parse them.
        """
        if raw is None or isinstance(raw, bool):
            return False
        if self.prefix:
            return str(raw).strip().upper().startswith(self.prefix.upper())
        return self.extract(raw) is not None

    def fits(self, value: int) -> bool:
        """True if ``value`` can be written within the namespace's digit width."""
        return not self.width or len(str(value)) <= self.width

    def normalize(self, candidate: Union[int, str, Identifier]) -> int:
        """Integer value of a candidate, rejecting values that do not fit the namespace."""
        if isinstance(candidate, Identifier):
            if candidate.namespace != self.name:
                raise ValueError(f"{candidate.formatted} belongs to namespace {candidate.namespace}, not {self.name}")
            return candidate.value
        if isinstance(candidate, int) and not isinstance(candidate, bool):
            if candidate < 0 or not self.fits(candidate):
                raise ValueError(f"{candidate} does not fit the {self.name} namespace")
            return candidate
        value = self.extract(candidate)
        if value is None:
            raise ValueError(f"{candidate!r} does not conform to the {self.name} namespace")
        return value

    def format(self, value: int) -> str:
        digits = str(value).zfill(self.width) if self.width else str(value)
        return f"{self.prefix}{digits}"

    def identifier(self, value: int) -> Identifier:
        return Identifier(namespace=self.name, value=value, formatted=self.format(value))


CUSTOMER_NAMESPACE = Namespace(
    name="customer",
    start=101660,
    floor=101659,
    sources=(
        IdentifierSource("customer-invoices", ("invoiceNumber",)),
        IdentifierSource("taxedInvoices", ("invoiceNumber",)),
    ),
)

T_NAMESPACE = Namespace(
    name="t",
    prefix="T-",
    width=6,
    start=100001,
    floor=100000,
    sources=(
        IdentifierSource("corporate-orders", ("orderDetails.billInvoice",)),
        IdentifierSource("customer-invoices", ("invoiceNumber",)),
        IdentifierSource("taxedInvoices", ("invoiceNumber", "orderDetails.billInvoice")),
    ),
)

NAMESPACES: Dict[str, Namespace] = {
    CUSTOMER_NAMESPACE.name: CUSTOMER_NAMESPACE,
    T_NAMESPACE.name: T_NAMESPACE,
}


def get_namespace(namespace: Union[str, Namespace]) -> Namespace:
    if isinstance(namespace, Namespace):
        return namespace
    key = namespace.lower()
    if key not in NAMESPACES:
        raise ValueError(f"Unknown namespace: {namespace}. Available: {sorted(NAMESPACES)}")
    return NAMESPACES[key]
