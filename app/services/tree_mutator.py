import asyncio
import logging
from typing import Any
from uuid import UUID
from app.core.exceptions import (
    CatalogError,
    CategoryNotFound,
    CircularReference,
    CycleDetected,
    DuplicateSiblingName,
    DuplicateSlug,
    HasChildren,
    HasProducts,
    ParentNotFound,
    ProductNotFound,
    SelfParent,
)
from app.crud.base import AbstractCatalogRepository
from app.models.category import Category
from app.models.product import Product
from app.schemas.category import (
    BulkLinkResult,
    BulkUpdateResult,
    CategoryBulkFields,
    CategoryCreate,
    CategoryUpdate,
    ItemResult,
    ReassignResult,
)
from app.services.interfaces.count_synchronizer_interface import ICountSynchronizer
from app.services.interfaces.tree_mutator_interface import ITreeMutator
from app.services.membership_resolver import MembershipResolver
from app.services.utils import make_slug, normalize_membership, parse_id, validate_category_name

logger = logging.getLogger(__name__)

# Structural writes are validated and applied one at a time per process
_structure_lock = asyncio.Lock()

PLAIN_FIELDS = ("description", "is_active", "order", "seo_title", "seo_description", "seo_keywords")
NON_NULLABLE_FIELDS = ("is_active", "order")


class TreeMutator(ITreeMutator):
    def __init__(
        self,
        repo: AbstractCatalogRepository,
        counts: ICountSynchronizer,
        resolver: MembershipResolver | None = None,
        lock: asyncio.Lock | None = None,
    ):
        self.repo = repo
        self.counts = counts
        self.resolver = resolver or MembershipResolver(repo)
        self.lock = lock or _structure_lock

    # Structure

    async def create(self, data: CategoryCreate) -> Category:
        async with self.lock:
            name = validate_category_name(data.name)
            await self._ensure_unique_sibling(name, data.parent_id)
            if data.parent_id is not None and await self.repo.get_category_by_id(data.parent_id) is None:
                raise ParentNotFound(data.parent_id)
            slug = make_slug(name)
            await self._ensure_unique_slug(slug)

            category = await self.repo.create_category(
                name=name,
                slug=slug,
                description=(data.description or "").strip(),
                parent_id=data.parent_id,
                is_active=data.is_active,
                order=data.order,
                seo_title=data.seo_title,
                seo_description=data.seo_description,
                seo_keywords=data.seo_keywords,
                direct_product_count=0,
                subtree_product_count=0,
            )

        logger.info("Category created", extra={"category_id": str(category.id), "parent_id": str(category.parent_id)})
        await self.counts.recompute_many([category.id], trigger="category_created")
        return category

    async def create_root(self, data: CategoryCreate) -> Category:
        return await self.create(data.model_copy(update={"parent_id": None}))

    async def rename(self, category_id: UUID, new_name: str) -> Category:
        return await self._apply_changes(category_id, {"name": new_name})

    async def move(self, category_id: UUID, new_parent_id: UUID | None) -> Category:
        return await self._apply_changes(category_id, {"parent_id": new_parent_id})

    async def update(self, category_id: UUID, changes: CategoryUpdate) -> Category:
        return await self._apply_changes(category_id, changes.model_dump(exclude_unset=True))

    async def set_active(self, category_id: UUID, is_active: bool) -> Category:
        return await self._apply_changes(category_id, {"is_active": is_active})

    async def toggle_active(self, category_id: UUID) -> Category:
        async with self.lock:
            category = await self._get_category(category_id)
            return await self.repo.update_category_fields(category.id, {"is_active": not category.is_active})

    async def delete(self, category_id: UUID) -> None:
        async with self.lock:
            category = await self._get_category(category_id)

            child_count = await self.repo.count_child_categories(category.id)
            if child_count > 0:
                raise HasChildren(category.id, child_count)

            # Live count: the stored counter may lag behind
            product_count = await self.resolver.direct_product_count(category.id)
            if product_count > 0:
                raise HasProducts(category.id, product_count)
            # Soft-deleted products keep their membership for a later restore
            members = await self.repo.find_products_by_category(category.id)
            if members:
                raise HasProducts(category.id, len(members))

            parent_id = category.parent_id
            await self.repo.delete_category(category.id)

        logger.info("Category deleted", extra={"category_id": str(category_id)})
        await self.counts.recompute_many([parent_id], trigger="category_deleted")

    async def _apply_changes(self, category_id: UUID, fields: dict[str, Any]) -> Category:
        async with self.lock:
            category = await self._get_category(category_id)
            old_parent_id = category.parent_id
            updates: dict[str, Any] = {}

            target_parent_id = old_parent_id
            if "parent_id" in fields and fields["parent_id"] != old_parent_id:
                target_parent_id = fields["parent_id"]
                await self._validate_new_parent(category.id, target_parent_id)
                updates["parent_id"] = target_parent_id

            name = category.name
            if fields.get("name") is not None:
                name = validate_category_name(fields["name"])
                if name != category.name:
                    updates["name"] = name
                    updates["slug"] = make_slug(name)

            if "name" in updates or "parent_id" in updates:
                await self._ensure_unique_sibling(name, target_parent_id, exclude_id=category.id)
            if "slug" in updates and updates["slug"] != category.slug:
                await self._ensure_unique_slug(updates["slug"], exclude_id=category.id)

            for key in PLAIN_FIELDS:
                if key not in fields:
                    continue
                value = fields[key]
                if value is None and key in NON_NULLABLE_FIELDS:
                    continue
                if key == "description":
                    value = (value or "").strip()
                updates[key] = value

            if updates:
                category = await self.repo.update_category_fields(category.id, updates)

        if "parent_id" in updates:
            logger.info(
                "Category moved",
                extra={
                    "category_id": str(category.id),
                    "old_parent_id": str(old_parent_id),
                    "new_parent_id": str(target_parent_id),
                }
            )
            await self.counts.recompute_many(
                [old_parent_id, target_parent_id, category.id], trigger="category_moved"
            )
        return category

    async def _validate_new_parent(self, category_id: UUID, new_parent_id: UUID | None) -> None:
        if new_parent_id is None:
            return
        if new_parent_id == category_id:
            raise SelfParent(category_id)
        if await self.repo.get_category_by_id(new_parent_id) is None:
            raise ParentNotFound(new_parent_id)

        # The new parent must not sit anywhere below the category
        visited: set[UUID] = set()
        current = new_parent_id
        while current is not None:
            if current == category_id:
                raise CircularReference(category_id, new_parent_id)
            if current in visited:
                raise CycleDetected(current)
            visited.add(current)
            node = await self.repo.get_category_by_id(current)
            if node is None:
                break
            current = node.parent_id

    async def _ensure_unique_sibling(self, name: str, parent_id: UUID | None, exclude_id: UUID | None = None) -> None:
        existing = await self.repo.find_category_by_name_and_parent(name, parent_id, exclude_id=exclude_id)
        if existing:
            raise DuplicateSiblingName(name, parent_id)

    async def _ensure_unique_slug(self, slug: str, exclude_id: UUID | None = None) -> None:
        if await self.repo.find_category_by_slug(slug, exclude_id=exclude_id):
            raise DuplicateSlug(slug)

    async def _get_category(self, category_id: Any) -> Category:
        category_id = parse_id(category_id, "category id")
        category = await self.repo.get_category_by_id(category_id)
        if category is None:
            raise CategoryNotFound(category_id)
        return category

    async def _get_product(self, product_id: Any) -> Product:
        product_id = parse_id(product_id, "product id")
        product = await self.repo.get_product_by_id(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product

    # Membership

    async def reassign_products(self, source_id: Any, target_id: Any) -> ReassignResult:
        source = await self._get_category(source_id)
        target = await self._get_category(target_id)

        modified = 0
        if source.id != target.id:
            for product in await self.repo.find_products_by_category(source.id):
                category_ids = [target.id if cid == source.id else cid for cid in product.category_ids]
                legacy = target.id if product.category_id == source.id else product.category_id
                category_ids, legacy = normalize_membership(category_ids, legacy)
                await self.repo.update_product_categories(product.id, category_ids, legacy)
                modified += 1

            logger.info(
                "Products reassigned",
                extra={"source_id": str(source.id), "target_id": str(target.id), "modified": modified}
            )
            await self.counts.recompute_many([source.id, target.id], trigger="products_reassigned")

        return ReassignResult(
            modified=modified,
            source_remaining=await self.resolver.direct_product_count(source.id),
            target_total=await self.resolver.direct_product_count(target.id),
        )

    async def link_product(self, product_id: Any, category_id: Any) -> Product:
        product = await self._get_product(product_id)
        category = await self._get_category(category_id)

        if category.id in product.category_ids:
            return product

        category_ids, legacy = normalize_membership([*product.category_ids, category.id], product.category_id)
        product = await self.repo.update_product_categories(product.id, category_ids, legacy)
        await self.counts.recompute_many([category.id], trigger="product_linked")
        return product

    async def unlink_product(self, product_id: Any, category_id: Any) -> Product:
        product = await self._get_product(product_id)
        category = await self._get_category(category_id)

        if category.id not in product.category_ids:
            return product

        remaining = [cid for cid in product.category_ids if cid != category.id]
        legacy = None if product.category_id == category.id else product.category_id
        category_ids, legacy = normalize_membership(remaining, legacy)
        product = await self.repo.update_product_categories(product.id, category_ids, legacy)
        await self.counts.recompute_many([category.id], trigger="product_unlinked")
        return product

    async def bulk_link_products(self, category_id: Any, product_ids: list[Any]) -> BulkLinkResult:
        category = await self._get_category(category_id)

        results: list[ItemResult] = []
        linked = already_linked = errors = 0
        for raw_id in product_ids:
            try:
                product = await self._get_product(raw_id)
                if category.id in product.category_ids:
                    results.append(ItemResult(id=str(raw_id), success=True, message="Already linked"))
                    already_linked += 1
                    continue

                category_ids, legacy = normalize_membership([*product.category_ids, category.id], product.category_id)
                await self.repo.update_product_categories(product.id, category_ids, legacy)
                results.append(ItemResult(id=str(raw_id), success=True, message="Linked successfully"))
                linked += 1
            except CatalogError as exc:
                results.append(ItemResult(id=str(raw_id), success=False, message=exc.message))
                errors += 1

        await self.counts.recompute_many([category.id], trigger="products_bulk_linked")
        logger.info(
            "Bulk link completed",
            extra={"category_id": str(category.id), "linked": linked, "already_linked": already_linked, "errors": errors}
        )
        return BulkLinkResult(
            results=results,
            total=len(product_ids),
            linked=linked,
            already_linked=already_linked,
            errors=errors,
        )

    async def bulk_update_categories(self, category_ids: list[Any], changes: CategoryBulkFields) -> BulkUpdateResult:
        fields = {
            key: value for key, value in changes.model_dump(exclude_unset=True).items()
            if not (value is None and key in NON_NULLABLE_FIELDS)
        }
        if "description" in fields:
            fields["description"] = (fields["description"] or "").strip()
        if not fields:
            raise CatalogError("No update fields provided")

        results: list[ItemResult] = []
        valid_ids: list[UUID] = []
        for raw_id in category_ids:
            try:
                category = await self._get_category(raw_id)
            except CatalogError as exc:
                results.append(ItemResult(id=str(raw_id), success=False, message=exc.message))
                continue
            if category.id not in valid_ids:
                valid_ids.append(category.id)
            results.append(ItemResult(id=str(raw_id), success=True, message="Updated"))

        modified = await self.repo.update_categories_fields(valid_ids, fields)
        return BulkUpdateResult(results=results, modified=modified)
