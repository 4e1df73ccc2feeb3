import logging
from collections import defaultdict
from uuid import UUID
from rapidfuzz import fuzz, process, utils
from app.core.config import settings
from app.core.exceptions import CategoryNotFound, CycleDetected, InvalidName
from app.crud.base import AbstractCatalogRepository
from app.models.category import Category
from app.schemas.category import (
    CategoryDetail,
    CategoryOut,
    CategoryStats,
    CategoryStatsTotals,
    CategorySummary,
    CategoryTreeNode,
    RecentProductOut,
    RootCategoryOut,
)
from app.services.interfaces.tree_reader_interface import ITreeReader
from app.services.membership_resolver import MembershipResolver
from app.services.utils import parse_id

logger = logging.getLogger(__name__)


class TreeReader(ITreeReader):
    """Read-only hierarchical views built from the flat category table."""

    def __init__(
        self,
        repo: AbstractCatalogRepository,
        resolver: MembershipResolver | None = None,
        recent_products_limit: int = settings.RECENT_PRODUCTS_LIMIT,
        search_limit: int = settings.SEARCH_RESULTS_LIMIT,
        search_score_cutoff: int = settings.SEARCH_SCORE_CUTOFF,
    ):
        self.repo = repo
        self.resolver = resolver or MembershipResolver(repo)
        self.recent_products_limit = recent_products_limit
        self.search_limit = search_limit
        self.search_score_cutoff = search_score_cutoff

    async def list_categories(
        self,
        active_only: bool = False,
        parent_id: UUID | None = None,
        roots_only: bool = False,
        search: str | None = None,
    ) -> list[Category]:
        return await self.repo.list_categories(
            active_only=active_only,
            parent_id=parent_id,
            roots_only=roots_only,
            search=(search or "").strip() or None,
        )

    async def search_categories(self, query: str, limit: int | None = None) -> list[Category]:
        query = (query or "").strip()
        if not query:
            raise InvalidName("Search query is required")

        categories = {category.id: category for category in await self.repo.list_categories(active_only=True)}
        matches = process.extract(
            query,
            {category_id: category.name for category_id, category in categories.items()},
            scorer=fuzz.WRatio,
            processor=utils.default_process,
            limit=limit or self.search_limit,
            score_cutoff=self.search_score_cutoff,
        )
        return [categories[category_id] for _, _, category_id in matches]

    async def get_category(self, category_id: UUID) -> CategoryDetail:
        category = await self._get_category(category_id)

        parent = None
        if category.parent_id:
            parent = await self.repo.get_category_by_id(category.parent_id)
        children = await self.repo.find_categories_by_parent(category.id)
        product_count = await self.resolver.direct_product_count(category.id)
        recent = await self.repo.find_recent_products_by_category(category.id, limit=self.recent_products_limit)

        return CategoryDetail(
            category=CategoryOut.model_validate(category),
            parent=CategorySummary.model_validate(parent) if parent else None,
            children=[CategoryOut.model_validate(child) for child in children],
            product_count=product_count,
            recent_products=[RecentProductOut.model_validate(product) for product in recent],
        )

    async def build_tree(self, active_only: bool = False, live_counts: bool = False) -> list[CategoryTreeNode]:
        """Group the flat listing by parent into a forest.

        Children of a category filtered out by `active_only` are dropped with
        it. Counts come from the stored counters unless `live_counts` is set.
        Categories no root reaches (missing parent, stored parent loop) are
        left out and logged.
        """
        categories = await self.repo.list_categories(active_only=active_only)
        by_parent: dict[UUID | None, list[Category]] = defaultdict(list)
        for category in categories:
            by_parent[category.parent_id].append(category)

        forest: list[CategoryTreeNode] = []
        placed: set[UUID] = set()
        # Explicit stack keeps arbitrarily deep trees off the call stack
        stack = [(root, 0, None) for root in reversed(by_parent.get(None, []))]
        while stack:
            category, level, parent_node = stack.pop()
            placed.add(category.id)

            if live_counts:
                direct, subtree = await self.resolver.counts(category.id)
            else:
                direct, subtree = category.direct_product_count or 0, category.subtree_product_count or 0

            node = CategoryTreeNode(
                id=category.id,
                name=category.name,
                slug=category.slug,
                description=category.description or "",
                is_active=category.is_active,
                order=category.order or 0,
                level=level,
                direct_product_count=direct,
                subtree_product_count=subtree,
            )
            if parent_node is None:
                forest.append(node)
            else:
                parent_node.children.append(node)

            for child in reversed(by_parent.get(category.id, [])):
                stack.append((child, level + 1, node))

        unreachable = [str(category.id) for category in categories if category.id not in placed]
        if unreachable and not active_only:
            logger.warning(
                "Categories unreachable from any root left out of tree",
                extra={"category_ids": unreachable}
            )
        return forest

    async def breadcrumb_path(self, category_id: UUID) -> list[CategorySummary]:
        current = await self._get_category(category_id)

        path: list[CategorySummary] = []
        seen: set[UUID] = set()
        while current is not None:
            if current.id in seen:
                raise CycleDetected(current.id)
            seen.add(current.id)
            path.insert(0, CategorySummary.model_validate(current))
            current = await self.repo.get_category_by_id(current.parent_id) if current.parent_id else None

        return path

    async def list_roots(self, active_only: bool = False, include_stats: bool = False) -> list[RootCategoryOut]:
        roots = []
        for category in await self.repo.list_categories(active_only=active_only, roots_only=True):
            root = RootCategoryOut.model_validate(category)
            if include_stats:
                root.child_count = await self.repo.count_child_categories(category.id, active_only=active_only)
                root.product_count = await self.resolver.direct_product_count(category.id)
            roots.append(root)
        return roots

    async def stats(self) -> CategoryStats:
        categories = await self.repo.list_categories()

        nested = sum(1 for category in categories if category.parent_id is not None)
        totals = CategoryStatsTotals(
            total_categories=len(categories),
            active_categories=sum(1 for category in categories if category.is_active),
            categories_with_products=sum(1 for category in categories if (category.direct_product_count or 0) > 0),
            nested_categories=nested,
        )
        newest = sorted(
            categories,
            key=lambda category: (category.created_at is not None, category.created_at or 0),
            reverse=True,
        )[:5]

        return CategoryStats(
            totals=totals,
            by_level={"Main": len(categories) - nested, "Sub": nested},
            recent_categories=[CategoryOut.model_validate(category) for category in newest],
        )

    async def _get_category(self, category_id) -> Category:
        category_id = parse_id(category_id, "category id")
        category = await self.repo.get_category_by_id(category_id)
        if category is None:
            raise CategoryNotFound(category_id)
        return category
