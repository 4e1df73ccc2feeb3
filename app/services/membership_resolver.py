from collections import deque
from uuid import UUID
from app.core.exceptions import CycleDetected
from app.crud.base import AbstractCatalogRepository


class MembershipResolver:
    """Answers membership questions against live store data.

    Nothing here reads the denormalized counters; they are what this class
    is used to rebuild.
    """

    def __init__(self, repo: AbstractCatalogRepository):
        self.repo = repo

    async def descendant_ids(self, category_id: UUID, active_only: bool = False) -> set[UUID]:
        """All categories below `category_id`, excluding itself.

        With `active_only` the walk does not descend into inactive categories.
        Reaching any category twice means the stored parent links loop.
        """
        visited: set[UUID] = {category_id}
        descendants: set[UUID] = set()
        queue = deque([category_id])

        while queue:
            current = queue.popleft()
            for child in await self.repo.find_categories_by_parent(current, active_only=active_only):
                if child.id in visited:
                    raise CycleDetected(child.id)
                visited.add(child.id)
                descendants.add(child.id)
                queue.append(child.id)

        return descendants

    async def direct_product_count(self, category_id: UUID) -> int:
        return await self.repo.count_active_products_by_category(category_id)

    async def subtree_product_count(self, category_id: UUID) -> int:
        _, subtree = await self.counts(category_id)
        return subtree

    async def counts(self, category_id: UUID) -> tuple[int, int]:
        """(direct, subtree) for one category.

        The subtree figure sums direct counts over the category and every
        descendant, so a product filed under two categories of the same
        subtree is counted once for each of them.
        """
        direct = await self.direct_product_count(category_id)
        subtree = direct
        for descendant_id in await self.descendant_ids(category_id):
            subtree += await self.direct_product_count(descendant_id)
        return direct, subtree
