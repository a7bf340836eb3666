"""
Receipt API endpoints for parsing, storage and retrieval.
"""

import logging
from typing import Any, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from receipt_splitter.database import get_db
from receipt_splitter.dependencies import (
    get_current_user_id,
    get_ocr_client,
    get_structurer,
)
from receipt_splitter.schemas import (
    ParseRequest,
    ReceiptCreate,
    ReceiptResponse,
    StructuredReceipt,
)
from receipt_splitter.services.llm_service import ReceiptStructurer
from receipt_splitter.services.ocr_service import VisionOCRClient
from receipt_splitter.services.receipt_service import receipt_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=ReceiptResponse, status_code=status.HTTP_201_CREATED)
def create_receipt(
    receipt_in: ReceiptCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Any:
    """
    Store a receipt with its items and modifiers for the current user.
    """
    return receipt_service.create_receipt(db, user_id, receipt_in)


@router.post("/parse", response_model=StructuredReceipt, response_model_exclude_unset=True)
def parse_receipt(
    body: ParseRequest,
    user_id: str = Depends(get_current_user_id),
    ocr: VisionOCRClient = Depends(get_ocr_client),
    structurer: ReceiptStructurer = Depends(get_structurer),
) -> Any:
    """
    OCR a receipt photo and structure the text with the LLM.

    Nothing is stored; the client reviews the result and posts it to /receipts.
    """
    logger.info(f"Parsing receipt image for user {user_id} ({len(body.receipt)} chars)")
    text = ocr.extract_text(body.receipt)
    return structurer.structure(text)


@router.get("", response_model=List[ReceiptResponse])
def list_receipts(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Any:
    """
    List the current user's receipts.
    """
    return receipt_service.list_receipts(db, user_id)


@router.get("/{receipt_id}", response_model=ReceiptResponse)
def get_receipt(receipt_id: str, db: Session = Depends(get_db)) -> Any:
    """
    Get receipt details with items and modifiers. Public: anyone with the id can read it.
    """
    return receipt_service.get_receipt(db, receipt_id)
