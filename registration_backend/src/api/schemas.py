"""Request payloads accepted by the command endpoint."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from src.services.cart_assembly import Golfer
from src.services.migration import CustomerProfile


class Action(str, enum.Enum):
    CREATE = "create"
    READ = "read"
    READALL = "readall"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def _missing_(cls, value: object) -> Optional["Action"]:
        if isinstance(value, str):
            for member in cls:
                if member.value == value.strip().lower():
                    return member
        return None


class ReadPayload(BaseModel):
    field: str = ""
    value: Any = None


class UpdatePayload(BaseModel):
    """Sparse identifier snapshot plus parallel field/value lists."""

    identifiers: dict[str, Any] = Field(default_factory=dict)
    setfields: list[str] = Field(default_factory=list)
    setvalues: list[Any] = Field(default_factory=list)


class DeletePayload(BaseModel):
    field: str = ""
    value: Any = None
    values: list[Any] = Field(default_factory=list)


class Command(BaseModel):
    """A single create/read/readall/update/delete request against one table."""

    action: Action
    table: str = Field(..., min_length=1)
    create: dict[str, Any] = Field(default_factory=dict)
    read: ReadPayload = Field(default_factory=ReadPayload)
    update: UpdatePayload = Field(default_factory=UpdatePayload)
    delete: DeletePayload = Field(default_factory=DeletePayload)


class GolferPayload(BaseModel):
    name: str = Field(..., min_length=1)
    shirtsize: Union[str, int]
    dexterity: Optional[Union[str, int]] = None

    def to_golfer(self) -> Golfer:
        return Golfer(
            name=self.name,
            shirt_size_code=str(self.shirtsize),
            dexterity_code="" if self.dexterity is None else str(self.dexterity),
        )


class RegistrationPayload(BaseModel):
    orderdate: datetime
    sessionid: str = Field(..., min_length=1)
    pricingid: str = Field(..., min_length=1)
    golferinfo: list[GolferPayload] = Field(default_factory=list)


class MigrationPayload(BaseModel):
    shoppingorderid: int
    paymentid: str
    name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None

    def to_profile(self) -> CustomerProfile:
        return CustomerProfile(name=self.name, email=self.email, phone=self.phone)


class CartIds(BaseModel):
    cart_ids: list[int] = Field(..., min_length=1)
