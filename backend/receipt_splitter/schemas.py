from typing import Any, List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


# --- Auth ---
class UserCreate(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""
    monzo_id: Optional[str] = None


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    monzo_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    user: UserResponse
    token: str


# --- Receipt ---
class ReceiptItemBase(BaseModel):
    item: str = ""
    price: Optional[float] = None
    qty: int = 1


class ReceiptItemCreate(ReceiptItemBase):
    pass


class ReceiptItemResponse(ReceiptItemBase):
    id: str

    class Config:
        from_attributes = True


class ModifierBase(BaseModel):
    type: str = ""
    value: Optional[float] = None
    percentage: Optional[float] = None
    include: bool = True


class ModifierCreate(ModifierBase):
    pass


class ModifierResponse(ModifierBase):
    id: str

    class Config:
        from_attributes = True


class ReceiptBase(BaseModel):
    name: str = ""
    reason: str = ""
    monzo_id: Optional[str] = None


class ReceiptCreate(ReceiptBase):
    items: List[ReceiptItemCreate] = []
    modifiers: List[ModifierCreate] = []


class ReceiptResponse(ReceiptBase):
    id: str
    user_id: str
    items: List[ReceiptItemResponse] = []
    modifiers: List[ModifierResponse] = []
    created_at: datetime

    class Config:
        from_attributes = True


# --- Parsing (OCR + LLM) ---
class ParseRequest(BaseModel):
    receipt: str = Field(..., description="Base64 image or data: URL")


class StructuredReceipt(BaseModel):
    """
    LLM output, returned as the model wrote it.

    The prompt asks for ``{name, modifiers[], items[], notes?}`` but nothing
    here enforces it: any value is accepted and unknown keys are kept.
    """

    model_config = ConfigDict(extra="allow")

    name: Any = None
    items: Any = None
    modifiers: Any = None
    notes: Any = None
