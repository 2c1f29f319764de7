from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import List, Optional
import uuid
import logging

from .models import InventoryItem
from .schemas import InventoryItemCreate, InventoryItemUpdate, InventoryStats

logger = logging.getLogger(__name__)

class InventoryService:
    def __init__(self, db: Session):
        self.db = db

    def get_item_by_id(self, item_id: uuid.UUID) -> Optional[InventoryItem]:
        """Get item by ID"""
        return self.db.query(InventoryItem).filter(InventoryItem.id == item_id).first()

    def get_user_item(self, item_id: uuid.UUID, user_id: uuid.UUID) -> Optional[InventoryItem]:
        """Get item by ID, only if it belongs to the user"""
        return self.db.query(InventoryItem).filter(
            InventoryItem.id == item_id,
            InventoryItem.user_id == user_id
        ).first()

    def get_user_items(self, user_id: uuid.UUID, search: Optional[str] = None) -> List[InventoryItem]:
        """Get all items for a user, newest first, optionally filtered by a search term"""
        query = self.db.query(InventoryItem).filter(InventoryItem.user_id == user_id)

        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                InventoryItem.name.ilike(pattern),
                InventoryItem.category.ilike(pattern),
                InventoryItem.description.ilike(pattern)
            ))

        return query.order_by(InventoryItem.created_at.desc()).all()

    def stage_item(self, user_id: uuid.UUID, **fields) -> InventoryItem:
        """Add an item to the current transaction without committing it"""
        item = InventoryItem(user_id=user_id, **fields)
        self.db.add(item)
        self.db.flush()
        return item

    def create_item(self, item_data: InventoryItemCreate, user_id: uuid.UUID) -> InventoryItem:
        """Create a new item from manual entry"""
        item = self.stage_item(user_id, **item_data.model_dump())

        self.db.commit()
        self.db.refresh(item)

        logger.info(f"Created inventory item {item.id} for user {user_id}")
        return item

    def update_item(self, item_id: uuid.UUID, item_data: InventoryItemUpdate, user_id: uuid.UUID) -> Optional[InventoryItem]:
        """Update item"""
        item = self.get_user_item(item_id, user_id)
        if not item:
            return None

        update_data = item_data.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            setattr(item, field, value)

        self.db.commit()
        self.db.refresh(item)

        return item

    def delete_item(self, item_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """Delete item"""
        item = self.get_user_item(item_id, user_id)
        if not item:
            return False

        self.db.delete(item)
        self.db.commit()
        return True

    def get_user_stats(self, user_id: uuid.UUID) -> InventoryStats:
        """Get inventory totals for a user"""
        items = self.get_user_items(user_id)

        total_value = sum(item.estimated_value or 0 for item in items)

        categories = {}
        for item in items:
            if item.category:
                categories[item.category] = categories.get(item.category, 0) + 1

        return InventoryStats(
            total_items=len(items),
            total_value=round(float(total_value), 2),
            category_count=len(categories),
            categories=categories
        )
