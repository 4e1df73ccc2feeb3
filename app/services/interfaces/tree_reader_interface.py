from abc import ABC, abstractmethod
from uuid import UUID
from app.models.category import Category
from app.schemas.category import (
    CategoryDetail,
    CategoryStats,
    CategorySummary,
    CategoryTreeNode,
    RootCategoryOut,
)

class ITreeReader(ABC):
    @abstractmethod
    async def list_categories(
        self,
        active_only: bool = False,
        parent_id: UUID | None = None,
        roots_only: bool = False,
        search: str | None = None,
    ) -> list[Category]:
        pass

    @abstractmethod
    async def search_categories(self, query: str, limit: int | None = None) -> list[Category]:
        pass

    @abstractmethod
    async def get_category(self, category_id: UUID) -> CategoryDetail:
        pass

    @abstractmethod
    async def build_tree(self, active_only: bool = False, live_counts: bool = False) -> list[CategoryTreeNode]:
        pass

    @abstractmethod
    async def breadcrumb_path(self, category_id: UUID) -> list[CategorySummary]:
        pass

    @abstractmethod
    async def list_roots(self, active_only: bool = False, include_stats: bool = False) -> list[RootCategoryOut]:
        pass

    @abstractmethod
    async def stats(self) -> CategoryStats:
        pass
