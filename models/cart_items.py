from core.database import Base
from sqlalchemy import (Column, Integer, ForeignKey, UniqueConstraint, CheckConstraint)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin

class CartItem(Base, CreatedAtMixin):
    __tablename__ = "cart_items"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), nullable=False)

    #relationships
    user = relationship("User", back_populates="cart_items")
    item = relationship("Item", back_populates="cart_items")

    quantity = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        # One row per (user, item); repeated adds bump quantity
        UniqueConstraint("user_id", "item_id", name="uq_cart_item_user_item"),
        CheckConstraint("quantity >= 1", name="ck_cart_item_quantity"),
    )
