from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from schemas.product import ProductOut


class FavoriteCreate(BaseModel):
    product_id: int


class FavoriteOut(BaseModel):
    id: int
    product_id: int
    created_at: Optional[datetime] = None
    product: ProductOut

    class Config:
        from_attributes = True
