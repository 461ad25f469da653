from core.database import Base
from sqlalchemy import (Column, Integer, String, ForeignKey, JSON, Enum)
from .mixins import CreatedAtMixin, UpdatedAtMixin

ATTEMPT_STATUSES = ("pending", "charged", "unknown", "failed", "completed")


class CheckoutAttempt(Base, CreatedAtMixin, UpdatedAtMixin):
    """
    Idempotency record for one checkout.

    ``idempotency_key`` is derived from the user and the exact cart lines, so
    a resubmitted checkout of the same cart lands on the same row.
    ``in_flight_user_id`` equals ``user_id`` while the attempt is unresolved
    (pending, charged or unknown) and is NULL otherwise; its unique
    constraint allows only one unresolved checkout per user.
    """
    __tablename__ = "checkout_attempts"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True)

    in_flight_user_id = Column(Integer, unique=True, nullable=True)
    idempotency_key = Column(String(64), unique=True, nullable=False)
    status = Column(Enum(*ATTEMPT_STATUSES, name="checkout_attempt_status"), nullable=False, default="pending")

    amount = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False)
    payment_source = Column(String, nullable=False)
    # Snapshot of the charged cart lines
    lines = Column(JSON, nullable=False)

    charge_id = Column(String, nullable=True)
    settled_amount = Column(Integer, nullable=True)
    error = Column(String, nullable=True)
