"""
Authentication API endpoints.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from receipt_splitter.config import settings
from receipt_splitter.core.security import TokenService
from receipt_splitter.database import get_db
from receipt_splitter.dependencies import get_token_service
from receipt_splitter.limiter import limiter
from receipt_splitter.schemas import LoginRequest, LoginResponse, UserCreate, UserResponse
from receipt_splitter.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(user_in: UserCreate, db: Session = Depends(get_db)) -> Any:
    """
    Register a new user.
    """
    return auth_service.create_user(
        db,
        name=user_in.name,
        email=user_in.email,
        password=user_in.password,
        monzo_id=user_in.monzo_id,
    )


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
def login(
    request: Request,
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> Any:
    """
    Check email and password, return the user and a bearer token.
    """
    user, token = auth_service.authenticate_user(
        db, tokens, email=credentials.email, password=credentials.password
    )
    logger.info(f"User {user.id} logged in")
    return LoginResponse(user=UserResponse.model_validate(user), token=token)
