"""
Shared API dependencies.

External clients live on ``app.state`` (built once in the lifespan) and are
handed to routes through these functions so tests can override them.
"""

from typing import Optional

from fastapi import Depends, Header, Request

from receipt_splitter.config import Settings, get_settings
from receipt_splitter.core.exceptions import AuthError
from receipt_splitter.core.security import TokenService
from receipt_splitter.services.llm_service import ReceiptStructurer
from receipt_splitter.services.ocr_service import VisionOCRClient

BEARER_PREFIX = "Bearer "


def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    """Token service for the configured secret; 500 when the secret is missing."""
    return TokenService(settings.JWT_SECRET, settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def get_current_user_id(
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Validate the bearer token and return the caller's user id.
    """
    if not authorization:
        raise AuthError("Authorization header missing")

    if not authorization.startswith(BEARER_PREFIX):
        raise AuthError("Invalid Authorization header format")

    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthError("Invalid Authorization header format")

    tokens = get_token_service(settings)
    return tokens.verify(token)


def get_ocr_client(request: Request) -> VisionOCRClient:
    return request.app.state.ocr_client


def get_structurer(request: Request) -> ReceiptStructurer:
    return request.app.state.structurer
