from core.database import Base
from sqlalchemy.orm import relationship
from sqlalchemy import (Column, Integer, String, ForeignKey)
from .mixins import CreatedAtMixin

class Order(Base, CreatedAtMixin):
    __tablename__ = "orders"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    #relationships
    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")

    # Gateway-settled amount in minor units, never the client's number
    total = Column(Integer, nullable=False)
    # Gateway charge id
    charge = Column(String, nullable=False, unique=True)
