"""
User API endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from receipt_splitter.database import get_db
from receipt_splitter.dependencies import get_current_user_id
from receipt_splitter.schemas import UserResponse
from receipt_splitter.services.auth_service import auth_service

router = APIRouter()


@router.get("/me", response_model=UserResponse)
def read_users_me(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Any:
    """
    Get current user.
    """
    return auth_service.get_user_by_id(db, user_id)
