from pydantic import BaseModel, Field, field_validator
from typing import Optional, List

from modules.inventory.schemas import (
    ITEM_CATEGORIES, MAX_DESCRIPTION_LENGTH, MAX_SHORT_TEXT_LENGTH,
    clean_name, clean_optional_text, clean_estimated_value, clean_condition,
    InventoryItemResponse
)

class ExtractionResult(BaseModel):
    """Item attributes returned by the extraction gateway for one image.

    Gateway output is untrusted, so it goes through the same field rules as
    manual entry, with the category restricted to the fixed vocabulary.
    """
    name: str
    description: Optional[str] = None
    category: str
    estimated_value: float
    condition: str
    brand: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None

    @field_validator('name', mode='before')
    @classmethod
    def validate_name(cls, v):
        return clean_name(v)

    @field_validator('description', mode='before')
    @classmethod
    def validate_description(cls, v):
        return clean_optional_text(v, 'Description', MAX_DESCRIPTION_LENGTH)

    @field_validator('category', mode='before')
    @classmethod
    def validate_category(cls, v):
        v = str(v or '').strip().lower()
        if v not in ITEM_CATEGORIES:
            raise ValueError(f"Category must be one of: {', '.join(ITEM_CATEGORIES)}")
        return v

    @field_validator('estimated_value', mode='before')
    @classmethod
    def validate_estimated_value(cls, v):
        v = clean_estimated_value(v)
        if v is None:
            raise ValueError('Estimated value is required')
        return v

    @field_validator('condition', mode='before')
    @classmethod
    def validate_condition(cls, v):
        return clean_condition(v)

    @field_validator('brand', 'model', 'color', mode='before')
    @classmethod
    def validate_optional_details(cls, v, info):
        return clean_optional_text(v, info.field_name.capitalize(), MAX_SHORT_TEXT_LENGTH)

class AnalyzeItemsRequest(BaseModel):
    image_urls: List[str] = Field(alias="imageUrls")

class AnalyzeItemsResponse(BaseModel):
    success: bool = True
    items: List[InventoryItemResponse]

class AnalysisErrorResponse(BaseModel):
    error: str
