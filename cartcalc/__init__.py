"""Shopping cart pricing engine.

Line items and cart-level conditions (discounts, taxes, shipping fees)
with deterministic, ordered recomputation of per-row and cart totals.
"""

__version__ = "0.1.0"
