from core.database import Base
from sqlalchemy import (Column, Integer, String, ForeignKey, CheckConstraint)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin, UpdatedAtMixin

class Item(Base, CreatedAtMixin, UpdatedAtMixin):
    __tablename__ = "items"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    #relationships
    user = relationship("User", back_populates="items")
    cart_items = relationship("CartItem", back_populates="item", cascade="all, delete-orphan")

    title = Column(String, nullable=False)
    description = Column(String, nullable=False)
    image = Column(String)
    large_image = Column(String)
    # Minor currency units (cents)
    price = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_item_price"),
    )
