"""Shared fixtures for all tests."""

from collections.abc import Iterator

import pytest

from cartcalc.application.cart_handle import CartHandle
from cartcalc.infrastructure.model_registry import ModelRegistry
from cartcalc.infrastructure.notifier import EventNotifier
from cartcalc.infrastructure.session_store import InMemoryCartStore, get_cart_store


@pytest.fixture(autouse=True)
def reset_cart_store() -> Iterator[None]:
    """Start every test with an empty process-wide cart store."""
    get_cart_store().reset()
    yield
    get_cart_store().reset()


@pytest.fixture
def store() -> InMemoryCartStore:
    """Create an isolated cart store."""
    return InMemoryCartStore()


@pytest.fixture
def notifier() -> EventNotifier:
    """Create an isolated event notifier."""
    return EventNotifier()


@pytest.fixture
def registry() -> ModelRegistry:
    """Create a registry with a simple product resolver."""
    registry = ModelRegistry()
    products = {"A": {"id": "A", "title": "Widget"}}
    registry.register("Product", products.get)
    return registry


@pytest.fixture
def handle(
    store: InMemoryCartStore, notifier: EventNotifier, registry: ModelRegistry
) -> CartHandle:
    """Create a cart handle for the main instance."""
    return CartHandle(store=store, notifier=notifier, registry=registry)
