from pydantic import BaseModel, Field, model_validator
from typing import List, Optional, Literal
from datetime import datetime

Audience = Literal["retail", "wholesale", "all"]
Display = Literal["contain", "cover"]


class BannerBase(BaseModel):
    audience: Audience = "all"
    title: str = Field(min_length=1, max_length=150)
    subtitle: Optional[str] = Field(default=None, max_length=255)
    image_url: str = Field(min_length=1, max_length=600)
    link_url: Optional[str] = Field(default=None, max_length=600)
    alt_text: str = Field(min_length=1, max_length=200)
    display_mode: Display = "contain"
    is_active: bool = True
    sort_order: int = 0
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None

    @model_validator(mode="after")
    def check_window(self):
        if self.starts_at and self.ends_at and self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        return self


class BannerCreate(BannerBase):
    pass


# Partial update; an empty string clears subtitle and link_url
class BannerUpdate(BaseModel):
    audience: Optional[Audience] = None
    title: Optional[str] = Field(default=None, min_length=1, max_length=150)
    subtitle: Optional[str] = Field(default=None, max_length=255)
    image_url: Optional[str] = Field(default=None, min_length=1, max_length=600)
    link_url: Optional[str] = Field(default=None, max_length=600)
    alt_text: Optional[str] = Field(default=None, min_length=1, max_length=200)
    display_mode: Optional[Display] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None


class BannerOut(BannerBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BannerPosition(BaseModel):
    id: int
    sort_order: int


class BannerReorder(BaseModel):
    banners: List[BannerPosition] = Field(min_length=1)
