"""Global pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from storekeeper._storage.docs_memory import MemoryDocumentStore  # noqa: E402


@pytest.fixture
def store():
    """Empty in-memory document store."""
    return MemoryDocumentStore(global_config={})
