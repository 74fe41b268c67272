"""Infrastructure layer module.

Contains configuration, logging setup, session storage, event
notification and associated record resolution.
"""

from cartcalc.infrastructure.config import Settings, settings
from cartcalc.infrastructure.model_registry import ModelRegistry, get_model_registry
from cartcalc.infrastructure.notifier import EventNotifier, get_event_notifier
from cartcalc.infrastructure.session_store import (
    CartStore,
    InMemoryCartStore,
    get_cart_store,
)

__all__ = [
    "CartStore",
    "EventNotifier",
    "InMemoryCartStore",
    "ModelRegistry",
    "Settings",
    "get_cart_store",
    "get_event_notifier",
    "get_model_registry",
    "settings",
]
