from pydantic import BaseModel, Field
from typing import Optional, Literal


class AddressBase(BaseModel):
    type: Literal["shipping", "billing"] = "shipping"
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    phone: Optional[str] = None
    address_line1: str = Field(min_length=1)
    address_line2: Optional[str] = None
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = "Saudi Arabia"
    is_default: bool = False


class AddressCreate(AddressBase):
    pass


class AddressOut(AddressBase):
    id: int
    user_id: int
    full_address: str

    class Config:
        from_attributes = True
