# practice_booking/schemas/service.py

from __future__ import annotations
from typing import NewType, Optional
from pydantic import BaseModel, ConfigDict, Field

ServiceId = NewType("ServiceId", str)


class ServiceBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    duration_minutes: int = Field(..., gt=0, le=600)
    price: Optional[int] = Field(None, ge=0)


class ServiceCreate(ServiceBase):
    id: str = Field(..., min_length=1, max_length=64, pattern=r"^[a-z0-9][a-z0-9-]*$")


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    duration_minutes: Optional[int] = Field(None, gt=0, le=600)
    price: Optional[int] = Field(None, ge=0)


class ServiceOut(ServiceBase):
    model_config = ConfigDict(from_attributes=True)
    id: str
