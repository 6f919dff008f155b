# app/schemas/address.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class AddressCreate(SQLModel):
    """
    Payload for saving a delivery address.
    address, department, province and district are mandatory.
    """

    model_config = ConfigDict(extra="forbid")

    address_name: str = Field(default="", max_length=50)
    address: str
    department: str
    province: str
    district: str
    reference: str = ""
    is_default: bool = False

    @field_validator("address", "department", "province", "district")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("campo obligatorio")
        return v


class AddressUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    address_name: str | None = Field(default=None, max_length=50)
    address: str | None = None
    department: str | None = None
    province: str | None = None
    district: str | None = None
    reference: str | None = None
    is_default: bool | None = None

    @field_validator("address", "department", "province", "district")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("campo obligatorio")
        return v


class AddressRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    address_name: str
    address: str
    department: str
    province: str
    district: str
    reference: str
    is_default: bool
    created_at: datetime
    updated_at: datetime
