from sqlalchemy import Column, String, Text, Numeric, DateTime, ForeignKey, Uuid
from sqlalchemy.sql import func
from core.database import BaseModel

class InventoryItem(BaseModel):
    __tablename__ = "inventory_items"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    category = Column(String(100))
    estimated_value = Column(Numeric(12, 2, asdecimal=False))
    condition = Column(String(20), default='good')
    room_location = Column(String(100))
    brand = Column(String(100))
    model = Column(String(100))
    color = Column(String(100))
    image_url = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<InventoryItem(name='{self.name}', category='{self.category}')>"
