import json
from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Optional
from datetime import datetime


class NotificationOut(BaseModel):
    id: int
    user_id: int
    order_id: Optional[int] = None
    type: str
    title: str
    message: str
    data: Optional[Any] = None
    is_read: bool
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    # Stored as JSON text, returned as an object
    @field_validator("data", mode="before")
    @classmethod
    def parse_data(cls, v):
        if isinstance(v, str) and v:
            try:
                return json.loads(v)
            except ValueError:
                return v
        return v


class NotificationList(BaseModel):
    items: List[NotificationOut]
    unread_count: int


class NotificationPage(BaseModel):
    items: List[NotificationOut]
    total: int
    page: int
    page_size: int


class UnreadCount(BaseModel):
    unread_count: int


class DeviceTokenIn(BaseModel):
    token: str = Field(min_length=1)
    device_id: Optional[str] = None


class DeviceTokenDelete(BaseModel):
    token: str = Field(min_length=1)
