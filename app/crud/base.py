# app/crud/base.py
from abc import ABC, abstractmethod
from typing import Any, Iterable
from uuid import UUID
from app.models.category import Category
from app.models.product import Product

class AbstractCatalogRepository(ABC):
    """Persistence contract the catalog engine runs against.

    Write methods persist immediately; there is no unit of work spanning
    several calls.
    """

    # Categories

    @abstractmethod
    async def get_category_by_id(self, category_id: UUID) -> Category | None: ...

    @abstractmethod
    async def find_categories_by_parent(self, parent_id: UUID | None, active_only: bool = False) -> list[Category]: ...

    @abstractmethod
    async def find_category_by_name_and_parent(
        self, name: str, parent_id: UUID | None, exclude_id: UUID | None = None
    ) -> Category | None:
        """Case-insensitive name lookup among the children of `parent_id`."""

    @abstractmethod
    async def find_category_by_slug(self, slug: str, exclude_id: UUID | None = None) -> Category | None: ...

    @abstractmethod
    async def list_categories(
        self,
        active_only: bool = False,
        parent_id: UUID | None = None,
        roots_only: bool = False,
        search: str | None = None,
    ) -> list[Category]:
        """Flat listing sorted by (order, name)."""

    @abstractmethod
    async def create_category(self, **fields: Any) -> Category: ...

    @abstractmethod
    async def update_category_fields(self, category_id: UUID, fields: dict[str, Any]) -> Category | None: ...

    @abstractmethod
    async def update_categories_fields(self, category_ids: Iterable[UUID], fields: dict[str, Any]) -> int: ...

    @abstractmethod
    async def delete_category(self, category_id: UUID) -> bool:
        """Delete a category no product references; False when it does not exist."""

    @abstractmethod
    async def count_child_categories(self, category_id: UUID, active_only: bool = False) -> int: ...

    @abstractmethod
    async def count_active_products_by_category(self, category_id: UUID) -> int: ...

    # Products

    @abstractmethod
    async def get_product_by_id(self, product_id: UUID) -> Product | None: ...

    @abstractmethod
    async def create_product(
        self, name: str, category_ids: list[UUID], legacy_category_id: UUID | None, is_active: bool = True
    ) -> Product: ...

    @abstractmethod
    async def update_product_fields(self, product_id: UUID, fields: dict[str, Any]) -> Product | None: ...

    @abstractmethod
    async def update_product_categories(
        self, product_id: UUID, category_ids: list[UUID], legacy_category_id: UUID | None
    ) -> Product | None:
        """Replace the membership set, keeping the given order."""

    @abstractmethod
    async def find_products_by_category(self, category_id: UUID) -> list[Product]:
        """Every product (active or not) whose membership contains the category."""

    @abstractmethod
    async def find_recent_products_by_category(self, category_id: UUID, limit: int = 5) -> list[Product]: ...

    @abstractmethod
    async def list_products_by_categories(
        self, category_ids: Iterable[UUID], offset: int = 0, limit: int = 20
    ) -> tuple[list[Product], int]:
        """Active products in any of the categories, newest first, with the total."""
