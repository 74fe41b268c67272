"""Associated record resolution.

A cart may be associated with an external record type (for example a
catalog product model). Each type is registered with a resolver that maps
a line item's ``id`` to a record. Pricing never needs this; callers ask
for it explicitly.
"""

from collections.abc import Callable
from typing import Any

import structlog

logger = structlog.get_logger()

Resolver = Callable[[str], Any]


class ModelRegistry:
    """Named resolvers for associated records."""

    def __init__(self) -> None:
        self._resolvers: dict[str, Resolver] = {}

    def register(self, model_name: str, resolver: Resolver) -> None:
        self._resolvers[model_name] = resolver

    def has(self, model_name: str) -> bool:
        return model_name in self._resolvers

    def resolve(self, model_name: str, record_id: str) -> Any | None:
        """Look up a record.

        Args:
            model_name: Registered model name.
            record_id: Identifier to resolve.

        Returns:
            The record, or None when the model is unknown or has no match.
        """
        resolver = self._resolvers.get(model_name)
        if resolver is None:
            logger.warning("No resolver registered", model_name=model_name)
            return None
        return resolver(record_id)


# Global registry instance
_model_registry: ModelRegistry | None = None


def get_model_registry() -> ModelRegistry:
    """Get model registry singleton."""
    global _model_registry
    if _model_registry is None:
        _model_registry = ModelRegistry()
    return _model_registry
