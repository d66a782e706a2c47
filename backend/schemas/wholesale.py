from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class WholesaleRequestOut(BaseModel):
    id: int
    user_id: int
    company_name: str
    tax_number: Optional[str] = None
    commercial_register: str
    id_document_url: str
    commercial_document_url: str
    status: str
    rejection_reason: Optional[str] = None
    processed_by: Optional[int] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Admin view adds the requesting user's contact details
class WholesaleRequestAdminOut(WholesaleRequestOut):
    user_email: Optional[str] = None
    user_full_name: Optional[str] = None


class WholesaleRequestPage(BaseModel):
    items: List[WholesaleRequestAdminOut]
    total: int
    page: int
    page_size: int


class WholesaleDecision(BaseModel):
    reason: Optional[str] = None
