"""
Receipt Service: persistence of receipts with their items and modifiers.
"""

import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from receipt_splitter.core.exceptions import InternalError, NotFoundError
from receipt_splitter.models.receipt import Modifier, Receipt, ReceiptItem
from receipt_splitter.schemas import ReceiptCreate

logger = logging.getLogger(__name__)


class ReceiptService:
    def create_receipt(self, db: Session, owner_id: str, data: ReceiptCreate) -> Receipt:
        """
        Store a receipt with all of its items and modifiers.

        Everything is written in a single transaction; on failure nothing is kept.
        Field ranges are not checked, negative prices or quantities are stored as sent.
        """
        receipt = Receipt(
            user_id=owner_id,
            name=data.name,
            reason=data.reason,
            monzo_id=data.monzo_id,
        )
        receipt.items = [
            ReceiptItem(position=i, item=item.item, price=item.price, qty=item.qty)
            for i, item in enumerate(data.items)
        ]
        receipt.modifiers = [
            Modifier(
                position=i,
                type=mod.type,
                value=mod.value,
                percentage=mod.percentage,
                include=mod.include,
            )
            for i, mod in enumerate(data.modifiers)
        ]

        db.add(receipt)
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to store receipt for user {owner_id}: {e}")
            raise InternalError("Failed to store receipt")

        db.refresh(receipt)
        logger.info(
            f"Stored receipt {receipt.id} for user {owner_id} "
            f"({len(receipt.items)} items, {len(receipt.modifiers)} modifiers)"
        )
        return receipt

    def list_receipts(self, db: Session, owner_id: str) -> List[Receipt]:
        """All receipts owned by ``owner_id``, children loaded."""
        try:
            return (
                db.query(Receipt)
                .options(selectinload(Receipt.items), selectinload(Receipt.modifiers))
                .filter(Receipt.user_id == owner_id)
                .order_by(Receipt.created_at, Receipt.id)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch receipts for user {owner_id}: {e}")
            raise InternalError("Failed to fetch receipts")

    def get_receipt(self, db: Session, receipt_id: str) -> Receipt:
        """A single receipt by id, regardless of owner."""
        try:
            receipt = (
                db.query(Receipt)
                .options(selectinload(Receipt.items), selectinload(Receipt.modifiers))
                .filter(Receipt.id == receipt_id)
                .first()
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to retrieve receipt {receipt_id}: {e}")
            raise InternalError("Failed to retrieve receipt")

        if not receipt:
            raise NotFoundError("Receipt not found")
        return receipt


receipt_service = ReceiptService()
