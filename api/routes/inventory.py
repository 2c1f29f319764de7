from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
import uuid

from core.database import get_db
from modules.inventory.service import InventoryService
from modules.inventory.schemas import (
    InventoryItemCreate, InventoryItemUpdate, InventoryItemResponse, InventoryStats
)
from modules.users.models import User
from api.middleware.auth import get_current_user

router = APIRouter()

@router.get("/inventory", response_model=List[InventoryItemResponse])
async def get_items(
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    inventory_service = InventoryService(db)
    return inventory_service.get_user_items(current_user.id, search)

@router.get("/inventory/stats", response_model=InventoryStats)
async def get_inventory_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    inventory_service = InventoryService(db)
    return inventory_service.get_user_stats(current_user.id)

@router.get("/inventory/{item_id}", response_model=InventoryItemResponse)
async def get_item(
    item_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    inventory_service = InventoryService(db)
    item = inventory_service.get_user_item(item_id, current_user.id)

    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item not found"
        )

    return item

@router.post("/inventory", response_model=InventoryItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    item_data: InventoryItemCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    inventory_service = InventoryService(db)
    return inventory_service.create_item(item_data, current_user.id)

@router.put("/inventory/{item_id}", response_model=InventoryItemResponse)
async def update_item(
    item_id: uuid.UUID,
    item_data: InventoryItemUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    inventory_service = InventoryService(db)

    item = inventory_service.update_item(item_id, item_data, current_user.id)
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item not found"
        )
    return item

@router.delete("/inventory/{item_id}")
async def delete_item(
    item_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    inventory_service = InventoryService(db)

    success = inventory_service.delete_item(item_id, current_user.id)
    if not success:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item not found"
        )

    return {"message": "Item deleted successfully"}
