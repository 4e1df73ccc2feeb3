from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional


class CategoryCreate(BaseModel):
    name: str = Field(..., max_length=100)
    description: Optional[str] = Field("", max_length=500)
    parent_id: Optional[UUID] = None
    is_active: bool = True
    order: int = 0
    seo_title: Optional[str] = Field(None, max_length=60)
    seo_description: Optional[str] = Field(None, max_length=160)
    seo_keywords: Optional[str] = Field(None, max_length=200)


class CategoryUpdate(BaseModel):
    """Partial update; only fields explicitly sent are applied."""
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    parent_id: Optional[UUID] = None
    is_active: Optional[bool] = None
    order: Optional[int] = None
    seo_title: Optional[str] = Field(None, max_length=60)
    seo_description: Optional[str] = Field(None, max_length=160)
    seo_keywords: Optional[str] = Field(None, max_length=200)


class CategoryBulkFields(BaseModel):
    """Non-structural fields that may be written across many categories at once."""
    description: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None
    order: Optional[int] = None
    seo_title: Optional[str] = Field(None, max_length=60)
    seo_description: Optional[str] = Field(None, max_length=160)
    seo_keywords: Optional[str] = Field(None, max_length=200)


class CategoryBulkUpdateRequest(BaseModel):
    category_ids: List[str] = Field(..., min_length=1)
    update_data: CategoryBulkFields


class CategoryMoveRequest(BaseModel):
    new_parent_id: Optional[UUID] = None


class ReassignProductsRequest(BaseModel):
    source_category_id: UUID
    target_category_id: UUID


class BulkLinkRequest(BaseModel):
    product_ids: List[str] = Field(..., min_length=1)


class CategoryOut(BaseModel):
    id: UUID
    name: str
    slug: str
    description: Optional[str] = ""
    parent_id: Optional[UUID] = None
    is_active: bool
    order: int
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    seo_keywords: Optional[str] = None
    direct_product_count: int = 0
    subtree_product_count: int = 0
    count_last_computed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CategorySummary(BaseModel):
    id: UUID
    name: str
    slug: str
    parent_id: Optional[UUID] = None

    model_config = ConfigDict(from_attributes=True)


class CategoryTreeNode(BaseModel):
    id: UUID
    name: str
    slug: str
    description: Optional[str] = ""
    is_active: bool
    order: int
    level: int
    direct_product_count: int
    subtree_product_count: int
    children: List["CategoryTreeNode"] = []


class RootCategoryOut(CategoryOut):
    child_count: Optional[int] = None
    product_count: Optional[int] = None


class RecentProductOut(BaseModel):
    id: UUID
    name: str
    category_ids: List[UUID] = []
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CategoryDetail(BaseModel):
    category: CategoryOut
    parent: Optional[CategorySummary] = None
    children: List[CategoryOut] = []
    product_count: int
    recent_products: List[RecentProductOut] = []


class CategoryStatsTotals(BaseModel):
    total_categories: int
    active_categories: int
    categories_with_products: int
    nested_categories: int


class CategoryStats(BaseModel):
    totals: CategoryStatsTotals
    by_level: Dict[str, int]
    recent_categories: List[CategoryOut]


class ItemResult(BaseModel):
    id: str
    success: bool
    message: str


class BulkLinkResult(BaseModel):
    results: List[ItemResult]
    total: int
    linked: int
    already_linked: int
    errors: int


class BulkUpdateResult(BaseModel):
    results: List[ItemResult]
    modified: int


class ReassignResult(BaseModel):
    modified: int
    source_remaining: int
    target_total: int


class RecomputeSummary(BaseModel):
    total_categories: int
    updated: int
    failed: int = 0


CategoryTreeNode.model_rebuild()
