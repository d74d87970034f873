"""Importing this package registers every table on ``Base.metadata``."""

from .color import Color
from .contact import Contact
from .expense import Expense
from .inventory import Inventory
from .ledger import LedgerEntry
from .product import Product
from .purchase import Purchase
from .sale import Sale
from .user import User

__all__ = [
    "Color",
    "Contact",
    "Expense",
    "Inventory",
    "LedgerEntry",
    "Product",
    "Purchase",
    "Sale",
    "User",
]
