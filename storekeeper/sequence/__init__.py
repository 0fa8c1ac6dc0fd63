"""Sequential identifier allocation."""

from .allocator import SequenceAllocator
from .models import Identifier, SequenceGap, SequenceStatus
from .namespaces import (
    CUSTOMER_NAMESPACE,
    NAMESPACES,
    T_NAMESPACE,
    IdentifierSource,
    Namespace,
    get_namespace,
)

__all__ = [
    "SequenceAllocator",
    "Identifier",
    "SequenceGap",
    "SequenceStatus",
    "Namespace",
    "IdentifierSource",
    "CUSTOMER_NAMESPACE",
    "T_NAMESPACE",
    "NAMESPACES",
    "get_namespace",
]
