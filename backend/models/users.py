# backend/models/users.py
import enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from sqlalchemy.orm import relationship
from database import Base

# System roles; admins and super admins share the back-office permissions
class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

ADMIN_ROLES = {UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value}

class AccountType(str, enum.Enum):
    RETAIL = "retail"
    WHOLESALE = "wholesale"

# Represents a user account with authentication details and system role
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.CUSTOMER.value)
    account_type = Column(String(20), nullable=False, default=AccountType.RETAIL.value)
    is_active = Column(Boolean, nullable=False, default=True)

    # Wholesale access is granted by an approved upgrade request
    wholesale_access = Column(Boolean, nullable=False, default=False)
    company_name = Column(String, nullable=True)
    commercial_register = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    addresses = relationship("Address", back_populates="user", cascade="all, delete-orphan")
    cart_items = relationship("CartItem", back_populates="user", cascade="all, delete-orphan")
    favorites = relationship("Favorite", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return (self.role or "").lower() in ADMIN_ROLES
