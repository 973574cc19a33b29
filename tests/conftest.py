"""Shared test fixtures.

Settings are read at import time, so the environment is prepared before any
application module is imported.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests-only")
os.environ["STORE_BACKEND"] = "memory"
os.environ["ORDER_SWEEP_INTERVAL_SECONDS"] = "0"

from collections.abc import Iterator  # noqa: E402

import pytest  # noqa: E402

from src.sf_catalog.domain.models import Product  # noqa: E402
from src.sf_catalog.infrastructure.persistence import ProductRepository  # noqa: E402
from src.sf_order.application.service import OrderStore, reset_order_store  # noqa: E402
from src.sf_store.application.service import set_store  # noqa: E402
from src.sf_store.infrastructure.memory_store import InMemoryKeyValueStore  # noqa: E402
from tests.factories import FakeClock, make_product  # noqa: E402


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> Iterator[InMemoryKeyValueStore]:
    """Fresh in-memory store, also installed as the process-wide store."""
    kv = InMemoryKeyValueStore()
    set_store(kv)
    reset_order_store()
    yield kv
    set_store(None)
    reset_order_store()


@pytest.fixture
def product_repo(store: InMemoryKeyValueStore) -> ProductRepository:
    return ProductRepository(store)


@pytest.fixture
async def saved_product(product_repo: ProductRepository) -> Product:
    product = make_product()
    await product_repo.save(product)
    return product


@pytest.fixture
def order_store(store: InMemoryKeyValueStore, clock: FakeClock) -> OrderStore:
    return OrderStore(store, clock=clock)
