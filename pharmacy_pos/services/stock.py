"""Cart/stock consistency check"""

from dataclasses import dataclass

from .cart import Cart


@dataclass(frozen=True)
class Violation:
    """A cart line whose quantity exceeds current stock"""
    product_id: str
    requested: int
    max_allowed: int


def revalidate(cart: Cart, fresh_stock: dict[str, int]) -> list[Violation]:
    """
    Compare every cart line against fresh stock levels.

    Products absent from ``fresh_stock`` are treated as having none left.
    """
    violations = []
    for line in cart.lines:
        available = fresh_stock.get(line.product_id, 0)
        if line.quantity > available:
            violations.append(Violation(line.product_id, line.quantity, available))
    return violations
