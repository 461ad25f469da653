import enum
from core.database import Base
from sqlalchemy import (Column, Integer, String, DateTime, JSON)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin


class Permission(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    ITEMCREATE = "ITEMCREATE"
    ITEMUPDATE = "ITEMUPDATE"
    ITEMDELETE = "ITEMDELETE"
    PERMISSIONUPDATE = "PERMISSIONUPDATE"


class User(Base, CreatedAtMixin):
    __tablename__ = "users"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #relationships
    items = relationship("Item", back_populates="user")
    cart_items = relationship("CartItem", back_populates="user")
    orders = relationship("Order", back_populates="user")

    email = Column(String, unique=True, nullable=False, index=True)
    first_name = Column(String)
    last_name = Column(String)
    phone_number = Column(String, nullable=True)
    hashed_password = Column(String, nullable=False)
    # List of Permission values, stored as given
    permissions = Column(JSON, nullable=False, default=lambda: [Permission.USER.value])
    # Password reset fields
    reset_token = Column(String(64), nullable=True, index=True)
    reset_token_expiry = Column(DateTime(timezone=True), nullable=True)
