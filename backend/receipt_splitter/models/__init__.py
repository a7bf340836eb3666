"""
Database models for the Receipt Splitter backend.

All SQLAlchemy models are imported here so metadata knows about them.
"""

from receipt_splitter.models.receipt import Modifier, Receipt, ReceiptItem
from receipt_splitter.models.user import User

__all__ = [
    "User",
    "Receipt",
    "ReceiptItem",
    "Modifier",
]
