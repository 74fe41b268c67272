"""Application layer module.

Contains the cart handle that orchestrates validation, pricing,
persistence and notification for every cart operation.
"""

from cartcalc.application.cart_handle import (
    CartHandle,
    build_line_item,
    get_cart_handle,
)

__all__ = [
    "CartHandle",
    "build_line_item",
    "get_cart_handle",
]
