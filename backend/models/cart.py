# backend/models/cart.py
from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base


# One product line in a user's cart; the cart itself is just the set of lines
class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), index=True, nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity >= 1"), nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="cart_items")
    product = relationship("Product")

    __table_args__ = (
        # Unique constraint to prevent duplicate product entries for the same user
        UniqueConstraint("user_id", "product_id", name="uq_cartitem_user_product"),
    )

    @property
    def line_total(self) -> float:
        if self.product is None:
            return 0.0
        return self.product.effective_price * self.quantity
