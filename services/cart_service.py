from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from core.exceptions import NotFound, Forbidden
from models.cart_items import CartItem
from models.items import Item
from services.identity_service import Identity
from services.permission_service import is_owner
from utils.logger import get_logger

logger = get_logger(__name__)


class CartService:

    def get_cart(self, identity: Identity, db: Session) -> list[CartItem]:
        user = identity.require_user()
        return (
            db.query(CartItem)
            .options(joinedload(CartItem.item))
            .filter(CartItem.user_id == user.id)
            .order_by(CartItem.id)
            .all()
        )

    def add_to_cart(self, identity: Identity, item_id: int, db: Session) -> CartItem:
        """
        Adds one of ``item_id`` to the caller's cart.

        The store does the upsert: an atomic ``quantity = quantity + 1``
        first, an insert only when no row matched, and the unique
        (user_id, item_id) constraint turns a lost insert race into an
        IntegrityError that is answered with the increment again.
        """
        user = identity.require_user()
        user_id = user.id

        if not db.query(Item.id).filter(Item.id == item_id).first():
            raise NotFound("Item not found", item_id=item_id)

        if self._increment(db, user_id, item_id) == 0:
            try:
                db.add(CartItem(user_id=user_id, item_id=item_id, quantity=1))
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.info(
                    "Concurrent add to cart, incrementing instead",
                    extra={"user_id": user_id, "item_id": item_id}
                )
                self._increment(db, user_id, item_id)
                db.commit()
        else:
            db.commit()

        cart_item = (
            db.query(CartItem)
            .options(joinedload(CartItem.item))
            .filter(CartItem.user_id == user_id, CartItem.item_id == item_id)
            .one()
        )

        logger.info(
            "Item added to cart",
            extra={"user_id": user_id, "item_id": item_id, "quantity": cart_item.quantity}
        )

        return cart_item

    def remove_from_cart(self, identity: Identity, cart_item_id: int, db: Session) -> None:
        user = identity.require_user()

        cart_item = (
            db.query(CartItem)
            .filter(CartItem.id == cart_item_id)
            .one_or_none()
        )
        if not cart_item:
            raise NotFound("No cart item found!", cart_item_id=cart_item_id)

        if not is_owner(cart_item.user_id, user):
            raise Forbidden("That cart item is not yours", cart_item_id=cart_item_id)

        db.delete(cart_item)
        db.commit()

        logger.info("Item removed from cart", extra={"user_id": user.id, "cart_item_id": cart_item_id})

    @staticmethod
    def _increment(db: Session, user_id: int, item_id: int) -> int:
        result = db.execute(
            update(CartItem)
            .where(CartItem.user_id == user_id, CartItem.item_id == item_id)
            .values(quantity=CartItem.quantity + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
