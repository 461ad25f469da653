from sqlalchemy.orm import Session
from core.exceptions import NotFound
from models.items import Item
from schemas.item_schemas import CreateItemRequest, UpdateItemRequest
from services.identity_service import Identity
from services.permission_service import (require_owner_or_permission, ITEM_UPDATE_ROLES,
                                         ITEM_DELETE_ROLES)
from utils.logger import get_logger

logger = get_logger(__name__)


class ItemService:

    def create_item(self, identity: Identity, request: CreateItemRequest, db: Session) -> Item:
        user = identity.require_user()

        item = Item(**request.model_dump(), user_id=user.id)
        db.add(item)
        db.commit()
        db.refresh(item)

        logger.info("Item created", extra={"item_id": item.id, "user_id": user.id})

        return item

    def list_items(self, db: Session, skip: int = 0, limit: int = 50) -> list[Item]:
        return db.query(Item).order_by(Item.id.desc()).offset(skip).limit(limit).all()

    def get_item(self, item_id: int, db: Session) -> Item:
        item = db.query(Item).filter(Item.id == item_id).one_or_none()
        if not item:
            raise NotFound("Item not found", item_id=item_id)
        return item

    def update_item(self, identity: Identity, item_id: int, request: UpdateItemRequest, db: Session) -> Item:
        user = identity.require_user()
        item = self.get_item(item_id, db)

        require_owner_or_permission(item.user_id, user, ITEM_UPDATE_ROLES)

        # Orders keep their snapshots, so a price change only affects future checkouts
        updates = request.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in updates.items():
            setattr(item, field, value)
        db.commit()
        db.refresh(item)

        logger.info("Item updated", extra={"item_id": item.id, "user_id": user.id, "fields": sorted(updates)})

        return item

    def delete_item(self, identity: Identity, item_id: int, db: Session) -> None:
        """
        Owners can always delete their items; anyone else needs ADMIN or
        ITEMDELETE. Cart lines pointing at the item go with it, order
        history does not (orders hold snapshots).
        """
        user = identity.require_user()
        item = self.get_item(item_id, db)

        require_owner_or_permission(item.user_id, user, ITEM_DELETE_ROLES)

        db.delete(item)
        db.commit()

        logger.info("Item deleted", extra={"item_id": item_id, "user_id": user.id})
