from abc import ABC, abstractmethod
from typing import Any
from uuid import UUID
from app.models.category import Category
from app.models.product import Product
from app.schemas.category import (
    BulkLinkResult,
    BulkUpdateResult,
    CategoryBulkFields,
    CategoryCreate,
    CategoryUpdate,
    ReassignResult,
)

class ITreeMutator(ABC):
    @abstractmethod
    async def create(self, data: CategoryCreate) -> Category:
        pass

    @abstractmethod
    async def create_root(self, data: CategoryCreate) -> Category:
        pass

    @abstractmethod
    async def rename(self, category_id: UUID, new_name: str) -> Category:
        pass

    @abstractmethod
    async def move(self, category_id: UUID, new_parent_id: UUID | None) -> Category:
        pass

    @abstractmethod
    async def update(self, category_id: UUID, changes: CategoryUpdate) -> Category:
        pass

    @abstractmethod
    async def set_active(self, category_id: UUID, is_active: bool) -> Category:
        pass

    @abstractmethod
    async def toggle_active(self, category_id: UUID) -> Category:
        pass

    @abstractmethod
    async def delete(self, category_id: UUID) -> None:
        pass

    @abstractmethod
    async def reassign_products(self, source_id: Any, target_id: Any) -> ReassignResult:
        pass

    @abstractmethod
    async def link_product(self, product_id: Any, category_id: Any) -> Product:
        pass

    @abstractmethod
    async def unlink_product(self, product_id: Any, category_id: Any) -> Product:
        pass

    @abstractmethod
    async def bulk_link_products(self, category_id: Any, product_ids: list[Any]) -> BulkLinkResult:
        pass

    @abstractmethod
    async def bulk_update_categories(self, category_ids: list[Any], changes: CategoryBulkFields) -> BulkUpdateResult:
        pass
