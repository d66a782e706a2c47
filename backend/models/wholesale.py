# backend/models/wholesale.py
import enum
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from database import Base

class WholesaleRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

# A retail customer's request to unlock wholesale pricing and products
class WholesaleUpgradeRequest(Base):
    __tablename__ = "wholesale_upgrade_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    company_name = Column(String, nullable=False)
    tax_number = Column(String, nullable=True)
    commercial_register = Column(String, nullable=False)
    id_document_url = Column(String, nullable=False)
    commercial_document_url = Column(String, nullable=False)
    status = Column(String(20), nullable=False, default=WholesaleRequestStatus.PENDING.value, index=True)
    rejection_reason = Column(Text, nullable=True)
    processed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", foreign_keys=[user_id])
