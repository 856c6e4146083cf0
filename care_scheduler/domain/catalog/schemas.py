"""Service catalog schemas"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    duration_minutes: int = Field(..., gt=0)
    base_price: Decimal = Field(..., ge=0, decimal_places=2)
    active: bool = True


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, gt=0)
    base_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    active: Optional[bool] = None

    def to_patch(self) -> dict:
        """Fields the caller sent; only the description can be cleared"""
        patch = self.model_dump(exclude_unset=True)
        return {k: v for k, v in patch.items() if v is not None or k == "description"}


class ServiceResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    duration_minutes: int
    base_price: Decimal
    active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
