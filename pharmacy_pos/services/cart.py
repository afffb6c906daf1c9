"""In-progress sale cart"""

from decimal import Decimal
from typing import Optional

from ..errors import InsufficientStock
from ..models.cart import CartLine
from ..models.catalog import CatalogItem


class Cart:
    """
    Ordered cart lines keyed by product id.

    Each line keeps the catalog snapshot it was built from, so the total is
    always computed from the prices that will be charged.
    """

    def __init__(self):
        self._lines: dict[str, CartLine] = {}

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, product_id: str) -> bool:
        return product_id in self._lines

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, product_id: str) -> Optional[CartLine]:
        return self._lines.get(product_id)

    def add(self, item: CatalogItem) -> CartLine:
        """
        Add one unit of ``item``, merging with an existing line.

        The line takes ``item`` as its snapshot, so adding again with a
        fresher catalog entry also refreshes the line's price and stock.
        """
        line = self._lines.get(item.id)
        quantity = line.quantity + 1 if line else 1

        if quantity > item.available_quantity:
            raise InsufficientStock(item.id, quantity, item.available_quantity)

        line = CartLine(item=item, quantity=quantity)
        self._lines[item.id] = line
        return line

    def set_quantity(self, product_id: str, quantity: int) -> Optional[CartLine]:
        """
        Set a line's quantity.

        A quantity of 0 or less removes the line. A quantity above the
        snapshotted stock raises InsufficientStock and leaves the line as is.
        """
        line = self._lines.get(product_id)
        if not line:
            return None

        if quantity <= 0:
            self.remove(product_id)
            return None

        if quantity > line.item.available_quantity:
            raise InsufficientStock(product_id, quantity, line.item.available_quantity)

        line.quantity = quantity
        return line

    def remove(self, product_id: str) -> None:
        self._lines.pop(product_id, None)

    def clear(self) -> None:
        self._lines.clear()

    def total(self) -> Decimal:
        return sum((line.subtotal for line in self._lines.values()), Decimal("0.00"))
