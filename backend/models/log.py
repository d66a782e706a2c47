import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Index, func
from sqlalchemy.orm import relationship
from database import Base

class LogStatus(str, enum.Enum):
    SUCCESS = "SUCCESS"
    FAIL = "FAIL"

# Audit trail of customer and back-office actions; rows outlive the acting user
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # e.g. ORDER_CREATE on "orders", WHOLESALE_APPROVE on "wholesale"
    action = Column(String(50), nullable=False, index=True)
    resource = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default=LogStatus.SUCCESS.value, index=True)
    ip = Column(String(64), nullable=True)
    meta = Column(JSON, nullable=True)

    user = relationship("User", lazy="joined", uselist=False)

    __table_args__ = (
        Index("ix_logs_resource_action", "resource", "action"),
    )

    @property
    def user_email(self):
        return self.user.email if self.user else None
