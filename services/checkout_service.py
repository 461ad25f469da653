"""
Cart to order conversion.

The store gives no multi-step transaction across "charge the card" and
"write the order", so checkout is driven by a ``CheckoutAttempt`` row that
moves through

    pending -> charged -> completed
    pending -> failed            (declined; cart untouched, user may retry)
    pending -> unknown           (gateway timeout; needs reconciliation)

Every move is a conditional UPDATE on the current status, so two workers can
never both advance the same attempt. The charge id is committed before the
order is written, which makes a crash or store failure after a successful
charge recoverable: retrying the same checkout or reconciling the attempt
finishes the order without charging again.
"""

import hashlib
from datetime import datetime, timedelta, timezone
from sqlalchemy import update, delete, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload
from core.config import Settings
from core.exceptions import (NotFound, CartEmpty, CheckoutInProgress, PaymentFailed,
                             PaymentStateUnknown, Inconsistent)
from models.cart_items import CartItem
from models.checkout_attempts import CheckoutAttempt
from models.order_items import OrderItem
from models.orders import Order
from services.identity_service import Identity
from services.payment_gateway import PaymentGateway, ChargeDeclined, ChargeTimeout
from services.permission_service import (require_owner_or_permission, require_permission,
                                         ORDER_READ_ROLES, RECONCILE_ROLES)
from utils.logger import get_logger

logger = get_logger(__name__)


def snapshot_line(cart_item: CartItem) -> dict:
    item = cart_item.item
    return {
        "cart_item_id": cart_item.id,
        "item_id": item.id,
        "title": item.title,
        "description": item.description,
        "image": item.image,
        "large_image": item.large_image,
        "price": item.price,
        "quantity": cart_item.quantity,
    }


def cart_total(lines: list[dict]) -> int:
    return sum(line["price"] * line["quantity"] for line in lines)


def idempotency_key(user_id: int, sequence: int, lines: list[dict]) -> str:
    """
    Same user, same cart, same point in the user's order history -> same key.

    ``sequence`` is the number of checkouts the user has completed, so a
    later cart that happens to look identical still gets a fresh key.
    """
    parts = [f"{user_id}", f"{sequence}"]
    for line in sorted(lines, key=lambda l: l["cart_item_id"]):
        parts.append(f"{line['cart_item_id']}:{line['item_id']}:{line['quantity']}:{line['price']}")
    return hashlib.sha256("|".join(parts).encode()).hexdigest()


class CheckoutService:

    def __init__(self, settings: Settings, gateway: PaymentGateway):
        self.currency = settings.PAYMENT_CURRENCY
        self.payment_timeout = settings.PAYMENT_TIMEOUT_SECONDS
        self.gateway = gateway

    def create_order(self, identity: Identity, payment_token: str, db: Session) -> Order:
        user = identity.require_user()
        user_id = user.id

        # Counted before the cart is read: a checkout of this same cart that
        # completes in between then either empties the cart or yields the
        # same key, never a fresh one for stale lines
        sequence = (
            db.query(func.count(CheckoutAttempt.id))
            .filter(CheckoutAttempt.user_id == user_id, CheckoutAttempt.status == "completed")
            .scalar()
        )

        cart = (
            db.query(CartItem)
            .options(joinedload(CartItem.item))
            .filter(CartItem.user_id == user_id)
            .order_by(CartItem.id)
            .all()
        )
        if not cart:
            raise CartEmpty("Your cart is empty")

        lines = [snapshot_line(cart_item) for cart_item in cart]
        # Recomputed from stored prices; whatever the client thinks it owes is ignored
        amount = cart_total(lines)

        key = idempotency_key(user_id, sequence, lines)

        attempt = self._claim(db, user_id, key, amount, payment_token, lines)

        if attempt.status == "completed":
            return self._order_of(db, attempt)

        if attempt.status == "pending":
            self._charge(db, attempt)

        return self._persist_order(db, attempt)

    def reconcile(self, identity: Identity, attempt_id: int, db: Session) -> CheckoutAttempt:
        """
        Settle an attempt that checkout could not finish on its own.

        charged: write the missing order.
        pending/unknown: ask the gateway whether the source was captured;
        if so continue as charged, otherwise mark the attempt failed. A
        pending attempt touched within PAYMENT_TIMEOUT_SECONDS may still
        have its charge call running and is left alone.
        failed/completed: nothing to do.
        """
        user = identity.require_user()
        require_permission(user, RECONCILE_ROLES)

        attempt = db.query(CheckoutAttempt).filter(CheckoutAttempt.id == attempt_id).one_or_none()
        if not attempt:
            raise NotFound("Checkout attempt not found", attempt_id=attempt_id)

        if attempt.status == "pending" and self._charge_may_be_running(attempt):
            raise CheckoutInProgress(
                "The charge for this attempt may still be running",
                attempt_id=attempt.id
            )

        if attempt.status in ("pending", "unknown"):
            from_status = attempt.status
            try:
                receipt = self.gateway.fetch_charge(attempt.payment_source)
            except ChargeTimeout:
                raise PaymentStateUnknown(
                    "The payment gateway did not answer in time",
                    attempt_id=attempt.id
                )

            if receipt is None:
                self._transition(db, attempt.id, from_status,
                                 status="failed", in_flight_user_id=None,
                                 error="Not captured at reconciliation")
            else:
                self._transition(db, attempt.id, from_status,
                                 status="charged", charge_id=receipt.id,
                                 settled_amount=receipt.settled_amount)
            db.refresh(attempt)

        if attempt.status == "charged":
            self._persist_order(db, attempt)
            db.refresh(attempt)

        logger.info(
            "Checkout attempt reconciled",
            extra={"attempt_id": attempt.id, "attempt_status": attempt.status, "by_user_id": user.id}
        )

        return attempt

    def list_orders(self, identity: Identity, db: Session) -> list[Order]:
        user = identity.require_user()
        return (
            db.query(Order)
            .options(selectinload(Order.items))
            .filter(Order.user_id == user.id)
            .order_by(Order.id.desc())
            .all()
        )

    def get_order(self, identity: Identity, order_id: int, db: Session) -> Order:
        user = identity.require_user()

        order = (
            db.query(Order)
            .options(selectinload(Order.items))
            .filter(Order.id == order_id)
            .one_or_none()
        )
        if not order:
            raise NotFound("Order not found", order_id=order_id)

        require_owner_or_permission(order.user_id, user, ORDER_READ_ROLES)

        return order

    def _claim(self, db: Session, user_id: int, key: str, amount: int,
               payment_token: str, lines: list[dict]) -> CheckoutAttempt:
        """
        Insert the attempt, or find out why we can't.

        The insert trips a unique constraint when this exact checkout was
        seen before (idempotency_key) or when another checkout of this user
        is unresolved (in_flight_user_id).
        """
        attempt = CheckoutAttempt(
            user_id=user_id,
            in_flight_user_id=user_id,
            idempotency_key=key,
            status="pending",
            amount=amount,
            currency=self.currency,
            payment_source=payment_token,
            lines=lines,
        )
        db.add(attempt)
        try:
            db.commit()
            return attempt
        except IntegrityError:
            db.rollback()

        existing = db.query(CheckoutAttempt).filter(CheckoutAttempt.idempotency_key == key).one_or_none()

        if existing is None:
            raise CheckoutInProgress(
                "Another checkout is still being processed for this account",
                user_id=user_id
            )

        if existing.status in ("completed", "charged"):
            return existing

        if existing.status == "unknown":
            raise PaymentStateUnknown(
                "A previous payment for this cart is awaiting reconciliation",
                attempt_id=existing.id
            )

        if existing.status == "failed":
            try:
                reclaimed = self._transition(db, existing.id, "failed",
                                             status="pending", in_flight_user_id=user_id,
                                             payment_source=payment_token, error=None)
            except IntegrityError:
                db.rollback()
                reclaimed = False
            if reclaimed:
                db.refresh(existing)
                logger.info("Retrying failed checkout", extra={"attempt_id": existing.id, "user_id": user_id})
                return existing

        raise CheckoutInProgress(
            "This checkout is already being processed",
            attempt_id=existing.id
        )

    def _charge(self, db: Session, attempt: CheckoutAttempt) -> None:
        attempt_id = attempt.id

        logger.info(
            "Charging payment",
            extra={"attempt_id": attempt_id, "amount": attempt.amount, "currency": attempt.currency}
        )

        try:
            receipt = self.gateway.charge(attempt.amount, attempt.currency, attempt.payment_source)
        except ChargeDeclined as e:
            self._transition(db, attempt_id, "pending",
                             status="failed", in_flight_user_id=None, error=str(e)[:500])
            logger.warning("Payment declined", extra={"attempt_id": attempt_id, "error": str(e)})
            raise PaymentFailed("Payment failed", attempt_id=attempt_id, reason=str(e))
        except ChargeTimeout:
            self._transition(db, attempt_id, "pending", status="unknown", error="Gateway timeout")
            logger.error("Payment state unknown after gateway timeout", extra={"attempt_id": attempt_id})
            raise PaymentStateUnknown(
                "The payment gateway did not answer in time; this payment will be reconciled",
                attempt_id=attempt_id
            )
        except Exception as e:
            # Can't tell whether money moved
            self._transition(db, attempt_id, "pending", status="unknown", error=str(e)[:500])
            raise

        if receipt.settled_amount != attempt.amount:
            logger.warning(
                "Gateway settled a different amount",
                extra={"attempt_id": attempt_id, "amount": attempt.amount,
                       "settled_amount": receipt.settled_amount}
            )

        if not self._transition(db, attempt_id, "pending", status="charged",
                                charge_id=receipt.id, settled_amount=receipt.settled_amount):
            logger.error(
                "Charge succeeded but attempt was no longer pending",
                extra={"attempt_id": attempt_id, "charge_id": receipt.id}
            )
            self._record_late_charge(db, attempt, receipt)
            raise Inconsistent(
                "Payment was taken but the checkout was changed concurrently",
                attempt_id=attempt_id, charge_id=receipt.id
            )

        db.refresh(attempt)

    def _persist_order(self, db: Session, attempt: CheckoutAttempt) -> Order:
        """
        Write the order for a charged attempt, clear the charged cart lines
        and complete the attempt, all in one commit.
        """
        attempt_id = attempt.id
        charge_id = attempt.charge_id

        try:
            order = db.query(Order).filter(Order.charge == charge_id).one_or_none()
            if order is None:
                order = Order(total=attempt.settled_amount, charge=charge_id, user_id=attempt.user_id)
                order.items = [
                    OrderItem(
                        title=line["title"],
                        description=line["description"],
                        image=line["image"],
                        large_image=line["large_image"],
                        price=line["price"],
                        quantity=line["quantity"],
                        user_id=attempt.user_id,
                    )
                    for line in attempt.lines
                ]
                db.add(order)
                db.flush()
                self._release_cart_lines(db, attempt.user_id, attempt.lines)

            completed = db.execute(
                update(CheckoutAttempt)
                .where(CheckoutAttempt.id == attempt_id, CheckoutAttempt.status == "charged")
                .values(status="completed", order_id=order.id, in_flight_user_id=None)
                .execution_options(synchronize_session=False)
            )
            if completed.rowcount != 1:
                db.rollback()
                return self._completed_order(db, attempt_id, charge_id)

            db.commit()

        except IntegrityError:
            # Somebody else wrote the order for this charge first
            db.rollback()
            return self._completed_order(db, attempt_id, charge_id)

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(
                "Order could not be saved after a successful charge",
                extra={"attempt_id": attempt_id, "charge_id": charge_id},
                exc_info=True
            )
            raise Inconsistent(
                "Payment was taken but the order could not be saved; it will be reconciled",
                attempt_id=attempt_id, charge_id=charge_id
            ) from e

        logger.info(
            "Order created",
            extra={"order_id": order.id, "attempt_id": attempt_id, "charge_id": charge_id,
                   "user_id": attempt.user_id}
        )

        return self._load_order(db, order.id)

    @staticmethod
    def _release_cart_lines(db: Session, user_id: int, lines: list[dict]) -> None:
        """
        Take the charged quantities out of the cart.

        A line whose quantity grew while the payment was running keeps the
        extra units; everything else is deleted.
        """
        for line in lines:
            quantity = line["quantity"]
            db.execute(
                delete(CartItem)
                .where(CartItem.id == line["cart_item_id"], CartItem.user_id == user_id,
                       CartItem.quantity <= quantity)
                .execution_options(synchronize_session=False)
            )
            db.execute(
                update(CartItem)
                .where(CartItem.id == line["cart_item_id"], CartItem.user_id == user_id,
                       CartItem.quantity > quantity)
                .values(quantity=CartItem.quantity - quantity)
                .execution_options(synchronize_session=False)
            )

    def _record_late_charge(self, db: Session, attempt: CheckoutAttempt, receipt) -> None:
        """
        Keep a charge that landed after the attempt left ``pending``.

        The attempt goes back to ``charged`` with the charge id so a retry or
        ``reconcile`` can still write the order. The in-flight marker is
        taken back unless another checkout of the user holds it.
        """
        values = dict(status="charged", charge_id=receipt.id, settled_amount=receipt.settled_amount)
        statement = (
            update(CheckoutAttempt)
            .where(CheckoutAttempt.id == attempt.id, CheckoutAttempt.status != "completed")
            .execution_options(synchronize_session=False)
        )
        try:
            db.execute(statement.values(in_flight_user_id=attempt.user_id, **values))
            db.commit()
        except IntegrityError:
            db.rollback()
            db.execute(statement.values(**values))
            db.commit()

    def _charge_may_be_running(self, attempt: CheckoutAttempt) -> bool:
        touched = attempt.updated_at or attempt.created_at
        if touched is None:
            return False
        if touched.tzinfo is None:
            # SQLite hands back naive UTC
            touched = touched.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) - touched < timedelta(seconds=self.payment_timeout)

    @staticmethod
    def _transition(db: Session, attempt_id: int, from_status: str, **values) -> bool:
        result = db.execute(
            update(CheckoutAttempt)
            .where(CheckoutAttempt.id == attempt_id, CheckoutAttempt.status == from_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            return False
        db.commit()
        return True

    def _completed_order(self, db: Session, attempt_id: int, charge_id: str) -> Order:
        attempt = db.query(CheckoutAttempt).filter(CheckoutAttempt.id == attempt_id).one()
        if attempt.status != "completed":
            raise Inconsistent(
                "Payment was taken but the order could not be saved; it will be reconciled",
                attempt_id=attempt_id, charge_id=charge_id
            )
        return self._order_of(db, attempt)

    def _order_of(self, db: Session, attempt: CheckoutAttempt) -> Order:
        return self._load_order(db, attempt.order_id)

    @staticmethod
    def _load_order(db: Session, order_id: int) -> Order:
        return (
            db.query(Order)
            .options(selectinload(Order.items))
            .filter(Order.id == order_id)
            .one()
        )
