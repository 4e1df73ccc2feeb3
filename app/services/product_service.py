import logging
import math
from typing import Any, Iterable
from uuid import UUID
from app.core.exceptions import CategoryNotFound, ProductNotFound
from app.crud.base import AbstractCatalogRepository
from app.models.product import Product
from app.schemas.product import ProductCreate, ProductOut, ProductPage, ProductUpdate
from app.services.interfaces.count_synchronizer_interface import ICountSynchronizer
from app.services.interfaces.product_service_interface import IProductService
from app.services.membership_resolver import MembershipResolver
from app.services.utils import normalize_membership, parse_id

logger = logging.getLogger(__name__)


class ProductService(IProductService):
    """Product writes that move category counters.

    Every write goes through `normalize_membership`, so `category_ids` stays
    authoritative and the legacy `category_id` is only ever derived from it.
    """

    def __init__(
        self,
        repo: AbstractCatalogRepository,
        counts: ICountSynchronizer,
        resolver: MembershipResolver | None = None,
    ):
        self.repo = repo
        self.counts = counts
        self.resolver = resolver or MembershipResolver(repo)

    async def create_product(self, data: ProductCreate) -> Product:
        category_ids, legacy = normalize_membership(data.category_ids, data.category_id)
        await self._ensure_categories_exist(category_ids)

        product = await self.repo.create_product(
            name=data.name.strip(),
            category_ids=category_ids,
            legacy_category_id=legacy,
            is_active=data.is_active,
        )
        logger.info("Product created", extra={"product_id": str(product.id), "categories": len(category_ids)})
        await self.counts.recompute_many(category_ids, trigger="product_created")
        return product

    async def get_product(self, product_id: Any) -> Product:
        product_id = parse_id(product_id, "product id")
        product = await self.repo.get_product_by_id(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product

    async def update_product(self, product_id: Any, changes: ProductUpdate) -> Product:
        product = await self.get_product(product_id)
        fields = changes.model_dump(exclude_unset=True)
        old_category_ids = list(product.category_ids)

        membership = None
        if fields.get("category_ids") is not None:
            # A new list replaces the set; only an explicit legacy id is merged in
            membership = normalize_membership(fields["category_ids"], fields.get("category_id"))
        elif "category_id" in fields:
            legacy = fields["category_id"]
            membership = normalize_membership([*old_category_ids, legacy] if legacy else old_category_ids, legacy)
        if membership is not None:
            await self._ensure_categories_exist(membership[0])

        updates = {}
        if fields.get("name") is not None:
            updates["name"] = fields["name"].strip()
        if fields.get("is_active") is not None and fields["is_active"] != product.is_active:
            updates["is_active"] = fields["is_active"]

        if updates:
            product = await self.repo.update_product_fields(product.id, updates)

        affected: list[UUID] = []
        if membership is not None:
            category_ids, legacy = membership
            if category_ids != old_category_ids or legacy != product.category_id:
                product = await self.repo.update_product_categories(product.id, category_ids, legacy)
            if set(category_ids) != set(old_category_ids):
                # Vacated categories must lose the product too
                affected.extend(old_category_ids)
                affected.extend(category_ids)
        if "is_active" in updates:
            affected.extend(old_category_ids)
            affected.extend(product.category_ids)

        await self.counts.recompute_many(affected, trigger="product_updated")
        return product

    async def delete_product(self, product_id: Any) -> Product:
        product = await self.get_product(product_id)
        if product.is_active:
            product = await self.repo.update_product_fields(product.id, {"is_active": False})
        logger.info("Product soft-deleted", extra={"product_id": str(product.id)})
        await self.counts.recompute_many(product.category_ids, trigger="product_deleted")
        return product

    async def list_products_by_category(
        self, category_id: Any, include_subcategories: bool = False, page: int = 1, limit: int = 20
    ) -> ProductPage:
        category_id = parse_id(category_id, "category id")
        if await self.repo.get_category_by_id(category_id) is None:
            raise CategoryNotFound(category_id)

        category_ids = [category_id]
        if include_subcategories:
            category_ids.extend(await self.resolver.descendant_ids(category_id, active_only=True))

        page = max(page, 1)
        limit = max(limit, 1)
        products, total = await self.repo.list_products_by_categories(
            category_ids, offset=(page - 1) * limit, limit=limit
        )
        return ProductPage(
            products=[ProductOut.model_validate(product) for product in products],
            total=total,
            page=page,
            total_pages=math.ceil(total / limit),
            limit=limit,
            include_subcategories=include_subcategories,
        )

    async def _ensure_categories_exist(self, category_ids: Iterable[UUID]) -> None:
        for category_id in category_ids:
            if await self.repo.get_category_by_id(category_id) is None:
                raise CategoryNotFound(category_id)
