# POS services

from .cart import Cart
from .stock import Violation, revalidate
from .sale_manager import SaleTransactionManager, CartState, CommitResult
from .inventory import InventoryMonitor
from .reporting import SalesReporter

__all__ = [
    "Cart",
    "Violation",
    "revalidate",
    "SaleTransactionManager",
    "CartState",
    "CommitResult",
    "InventoryMonitor",
    "SalesReporter",
]
