import pytest

from sortable.config import SortableConfig
from sortable.service import SortableService
from tests.memory_store import MemoryStore


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def service(memory_store):
    """Service with the default exclude-deleted policy"""
    return SortableService(memory_store, SortableConfig())
