# backend/models/banner.py
import enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from database import Base

class BannerAudience(str, enum.Enum):
    RETAIL = "retail"
    WHOLESALE = "wholesale"
    ALL = "all"

class DisplayMode(str, enum.Enum):
    CONTAIN = "contain"
    COVER = "cover"

# Storefront promotional banner, optionally limited to a time window
class Banner(Base):
    __tablename__ = "banners"

    id = Column(Integer, primary_key=True, index=True)
    audience = Column(String(20), nullable=False, default=BannerAudience.ALL.value, index=True)
    title = Column(String(150), nullable=False)
    subtitle = Column(String(255), nullable=True)
    image_url = Column(String(600), nullable=False)
    link_url = Column(String(600), nullable=True)
    alt_text = Column(String(200), nullable=False)
    display_mode = Column(String(20), nullable=False, default=DisplayMode.CONTAIN.value)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    starts_at = Column(DateTime, nullable=True)
    ends_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
