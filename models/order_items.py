from core.database import Base
from sqlalchemy import (Column, Integer, String, ForeignKey)
from sqlalchemy.orm import relationship

class OrderItem(Base):
    """
    Copy of an item as it was when it was bought.

    Deliberately has no foreign key to ``items``: editing or deleting the
    live item must not change order history.
    """
    __tablename__ = "order_items"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    #relationships
    order = relationship("Order", back_populates="items")

    title = Column(String, nullable=False)
    description = Column(String, nullable=False)
    image = Column(String)
    large_image = Column(String)
    price = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
