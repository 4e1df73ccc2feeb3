import logging
from collections import defaultdict, deque
from datetime import datetime, timezone
from typing import Iterable
from uuid import UUID
from app.core.exceptions import CatalogError, CycleDetected
from app.crud.base import AbstractCatalogRepository
from app.schemas.category import RecomputeSummary
from app.services.counts_logger import log_count_recompute
from app.services.interfaces.count_synchronizer_interface import ICountSynchronizer
from app.services.membership_resolver import MembershipResolver

logger = logging.getLogger(__name__)


class CountSynchronizer(ICountSynchronizer):
    """Keeps `direct_product_count` / `subtree_product_count` in step with membership.

    The counters are a projection of product membership and can be rebuilt at
    any time; `recompute_all` is the self-healing pass for any drift left by
    concurrent writers or failed recomputes.
    """

    def __init__(self, repo: AbstractCatalogRepository, resolver: MembershipResolver | None = None):
        self.repo = repo
        self.resolver = resolver or MembershipResolver(repo)

    async def recompute(self, category_id: UUID, trigger: str = "manual") -> None:
        await self._recompute_chain(category_id, trigger, done=set())

    async def recompute_many(self, category_ids: Iterable[UUID | None], trigger: str = "manual") -> None:
        # Membership is already written, so an ancestor refreshed for one id
        # is final for the rest of the batch as well
        done: set[UUID] = set()
        for category_id in dict.fromkeys(category_ids):
            if category_id is None or category_id in done:
                continue
            try:
                await self._recompute_chain(category_id, trigger, done)
            except Exception:
                logger.exception(
                    "Category count recompute failed",
                    extra={"category_id": str(category_id), "trigger": trigger}
                )

    async def recompute_all(self) -> RecomputeSummary:
        categories = await self.repo.list_categories()
        known = {category.id for category in categories}

        children: dict[UUID, list[UUID]] = defaultdict(list)
        for category in categories:
            if category.parent_id in known:
                children[category.parent_id].append(category.id)

        direct = {}
        for category in categories:
            direct[category.id] = await self.resolver.direct_product_count(category.id)

        updated = 0
        failed = 0
        for category in categories:
            try:
                subtree = self._subtree_from_index(category.id, children, direct)
            except CatalogError as exc:
                failed += 1
                logger.error(
                    "Skipping category during full recompute",
                    extra={"category_id": str(category.id), "error": exc.message}
                )
                continue

            changed = (
                category.direct_product_count != direct[category.id]
                or category.subtree_product_count != subtree
            )
            if changed:
                await self.repo.update_category_fields(category.id, {
                    "direct_product_count": direct[category.id],
                    "subtree_product_count": subtree,
                    "count_last_computed_at": datetime.now(timezone.utc),
                })
                updated += 1
            log_count_recompute(category.id, direct[category.id], subtree, "recompute_all", changed=changed)

        logger.info(
            "Recomputed category counts",
            extra={"total_categories": len(categories), "updated": updated, "failed": failed}
        )
        return RecomputeSummary(total_categories=len(categories), updated=updated, failed=failed)

    async def _recompute_chain(self, category_id: UUID, trigger: str, done: set[UUID]) -> None:
        visited: set[UUID] = set()
        current = category_id

        while current is not None and current not in done:
            if current in visited:
                raise CycleDetected(current)
            visited.add(current)

            category = await self.repo.get_category_by_id(current)
            if category is None:
                logger.warning("Count cascade reached a missing category", extra={"category_id": str(current)})
                return
            parent_id = category.parent_id

            direct, subtree = await self.resolver.counts(current)
            await self.repo.update_category_fields(current, {
                "direct_product_count": direct,
                "subtree_product_count": subtree,
                "count_last_computed_at": datetime.now(timezone.utc),
            })
            log_count_recompute(current, direct, subtree, trigger)

            done.add(current)
            current = parent_id

    @staticmethod
    def _subtree_from_index(category_id: UUID, children: dict[UUID, list[UUID]], direct: dict[UUID, int]) -> int:
        total = direct[category_id]
        visited = {category_id}
        queue = deque(children.get(category_id, []))
        while queue:
            current = queue.popleft()
            if current in visited:
                raise CycleDetected(current)
            visited.add(current)
            total += direct[current]
            queue.extend(children.get(current, []))
        return total
