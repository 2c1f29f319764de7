from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional, Dict, Any, List
from datetime import datetime
import uuid

ITEM_CATEGORIES = ('electronics', 'furniture', 'clothing', 'toys', 'appliances', 'other')
ITEM_CONDITIONS = ('excellent', 'good', 'fair', 'poor')

MAX_NAME_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000
MAX_SHORT_TEXT_LENGTH = 100
MAX_ESTIMATED_VALUE = 1_000_000

# Field rules shared by manual entry, updates and extracted items

def clean_name(v):
    if v is None or not str(v).strip():
        raise ValueError('Name is required')
    v = str(v).strip()
    if len(v) > MAX_NAME_LENGTH:
        raise ValueError(f'Name must be at most {MAX_NAME_LENGTH} characters')
    return v

def clean_optional_text(v, label: str, limit: int):
    if v is None:
        return None
    v = str(v).strip()
    if not v:
        return None
    if len(v) > limit:
        raise ValueError(f'{label} must be at most {limit} characters')
    return v

def clean_estimated_value(v):
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    try:
        v = float(v)
    except (TypeError, ValueError):
        raise ValueError('Estimated value must be a number')
    if v != v:
        raise ValueError('Estimated value must be a number')
    if v < 0:
        raise ValueError('Estimated value cannot be negative')
    if v > MAX_ESTIMATED_VALUE:
        raise ValueError('Estimated value cannot exceed 1,000,000')
    return v

def clean_condition(v):
    v = str(v or '').strip().lower()
    if v not in ITEM_CONDITIONS:
        raise ValueError(f"Condition must be one of: {', '.join(ITEM_CONDITIONS)}")
    return v

def clean_category(v):
    v = clean_optional_text(v, 'Category', MAX_SHORT_TEXT_LENGTH)
    if v and v.lower() in ITEM_CATEGORIES:
        return v.lower()
    return v

def first_error_message(errors: List[Dict[str, Any]]) -> str:
    """Return a readable message for the first pydantic validation error"""
    if not errors:
        return "Invalid input"

    error = errors[0]
    ctx = error.get('ctx') or {}
    if error.get('type') == 'value_error' and ctx.get('error'):
        return str(ctx['error'])

    field = '.'.join(str(part) for part in error.get('loc', ()) if part != 'body')
    message = error.get('msg', 'Invalid input')
    return f"{field}: {message}" if field else message

class InventoryFieldRules(BaseModel):
    """Validators for item fields; subclasses declare which fields they carry"""

    @field_validator('name', mode='before', check_fields=False)
    @classmethod
    def validate_name(cls, v):
        return clean_name(v)

    @field_validator('description', mode='before', check_fields=False)
    @classmethod
    def validate_description(cls, v):
        return clean_optional_text(v, 'Description', MAX_DESCRIPTION_LENGTH)

    @field_validator('category', mode='before', check_fields=False)
    @classmethod
    def validate_category(cls, v):
        return clean_category(v)

    @field_validator('estimated_value', mode='before', check_fields=False)
    @classmethod
    def validate_estimated_value(cls, v):
        return clean_estimated_value(v)

    @field_validator('condition', mode='before', check_fields=False)
    @classmethod
    def validate_condition(cls, v):
        return clean_condition(v)

    @field_validator('room_location', mode='before', check_fields=False)
    @classmethod
    def validate_room_location(cls, v):
        return clean_optional_text(v, 'Room location', MAX_SHORT_TEXT_LENGTH)

class InventoryItemBase(InventoryFieldRules):
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    estimated_value: Optional[float] = None
    condition: str = 'good'
    room_location: Optional[str] = None

class InventoryItemCreate(InventoryItemBase):
    pass

class InventoryItemUpdate(InventoryFieldRules):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    estimated_value: Optional[float] = None
    condition: Optional[str] = None
    room_location: Optional[str] = None

class InventoryItemResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    estimated_value: Optional[float] = None
    condition: Optional[str] = None
    room_location: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class InventoryStats(BaseModel):
    total_items: int
    total_value: float
    category_count: int
    categories: Dict[str, int] = {}
