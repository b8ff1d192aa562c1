# app/schemas/wedding.py
from datetime import date, datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class WeddingCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    wedding_date: Optional[date] = None
    venue: Optional[str] = Field(default=None, max_length=255)
    theme: Optional[str] = Field(default=None, max_length=255)


class WeddingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    name: str
    wedding_date: Optional[date] = None
    venue: Optional[str] = None
    theme: Optional[str] = None
    created_at: datetime


class ActivityOut(BaseModel):
    user_id: Optional[int] = None
    action: str
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    meta: Dict[str, Any] = {}
    ip_address: Optional[str] = None
    created_at: str
