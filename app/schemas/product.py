from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category_ids: List[str] = []
    # Single category field accepted from older clients
    category_id: Optional[str] = None
    is_active: bool = True


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category_ids: Optional[List[str]] = None
    category_id: Optional[str] = None
    is_active: Optional[bool] = None


class ProductOut(BaseModel):
    id: UUID
    name: str
    category_ids: List[UUID] = []
    category_id: Optional[UUID] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProductPage(BaseModel):
    products: List[ProductOut]
    total: int
    page: int
    total_pages: int
    limit: int
    include_subcategories: bool
