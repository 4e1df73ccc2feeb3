# app/crud/catalog_repository.py
from typing import Any, Iterable
from uuid import UUID
from sqlalchemy import delete, func, insert, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.future import select
from app.crud.base import AbstractCatalogRepository
from app.models.category import Category
from app.models.product import Product
from app.models.product_categories import product_categories

class CatalogRepository(AbstractCatalogRepository):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_category_by_id(self, category_id: UUID) -> Category | None:
        stmt = select(Category).where(Category.id == category_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def find_categories_by_parent(self, parent_id: UUID | None, active_only: bool = False) -> list[Category]:
        stmt = select(Category).where(self._parent_clause(parent_id))
        if active_only:
            stmt = stmt.where(Category.is_active.is_(True))
        stmt = stmt.order_by(Category.order, Category.name)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_category_by_name_and_parent(
        self, name: str, parent_id: UUID | None, exclude_id: UUID | None = None
    ) -> Category | None:
        stmt = select(Category).where(
            func.lower(Category.name) == name.strip().lower(),
            self._parent_clause(parent_id),
        )
        if exclude_id:
            stmt = stmt.where(Category.id != exclude_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def find_category_by_slug(self, slug: str, exclude_id: UUID | None = None) -> Category | None:
        stmt = select(Category).where(Category.slug == slug)
        if exclude_id:
            stmt = stmt.where(Category.id != exclude_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_categories(
        self,
        active_only: bool = False,
        parent_id: UUID | None = None,
        roots_only: bool = False,
        search: str | None = None,
    ) -> list[Category]:
        stmt = select(Category)
        if active_only:
            stmt = stmt.where(Category.is_active.is_(True))
        if roots_only:
            stmt = stmt.where(Category.parent_id.is_(None))
        elif parent_id:
            stmt = stmt.where(Category.parent_id == parent_id)
        if search:
            stmt = stmt.where(or_(
                Category.name.icontains(search, autoescape=True),
                Category.description.icontains(search, autoescape=True),
            ))
        stmt = stmt.order_by(Category.order, Category.name)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_category(self, **fields: Any) -> Category:
        new_cat = Category(**fields)
        self.db.add(new_cat)
        await self.db.commit()
        await self.db.refresh(new_cat)
        return new_cat

    async def update_category_fields(self, category_id: UUID, fields: dict[str, Any]) -> Category | None:
        category = await self.get_category_by_id(category_id)
        if category is None:
            return None
        for key, value in fields.items():
            setattr(category, key, value)
        await self.db.commit()
        return category

    async def update_categories_fields(self, category_ids: Iterable[UUID], fields: dict[str, Any]) -> int:
        ids = list(category_ids)
        if not ids or not fields:
            return 0
        stmt = (
            update(Category)
            .where(Category.id.in_(ids))
            .values(**fields)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount

    async def delete_category(self, category_id: UUID) -> bool:
        category = await self.get_category_by_id(category_id)
        if category is None:
            return False

        await self.db.delete(category)
        await self.db.commit()
        return True

    async def count_child_categories(self, category_id: UUID, active_only: bool = False) -> int:
        stmt = select(func.count(Category.id)).where(Category.parent_id == category_id)
        if active_only:
            stmt = stmt.where(Category.is_active.is_(True))
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def count_active_products_by_category(self, category_id: UUID) -> int:
        stmt = (
            select(func.count(Product.id))
            .select_from(Product)
            .join(product_categories, product_categories.c.product_id == Product.id)
            .where(
                product_categories.c.category_id == category_id,
                Product.is_active.is_(True),
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def get_product_by_id(self, product_id: UUID) -> Product | None:
        stmt = self._product_select().where(Product.id == product_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def create_product(
        self, name: str, category_ids: list[UUID], legacy_category_id: UUID | None, is_active: bool = True
    ) -> Product:
        product = Product(
            name = name,
            category_id = legacy_category_id,
            is_active = is_active,
        )
        self.db.add(product)
        await self.db.flush()
        await self._write_memberships(product.id, category_ids)
        await self.db.commit()
        await self.db.refresh(product, attribute_names=["categories"])
        return product

    async def update_product_fields(self, product_id: UUID, fields: dict[str, Any]) -> Product | None:
        product = await self.get_product_by_id(product_id)
        if product is None:
            return None
        for key, value in fields.items():
            setattr(product, key, value)
        await self.db.commit()
        return product

    async def update_product_categories(
        self, product_id: UUID, category_ids: list[UUID], legacy_category_id: UUID | None
    ) -> Product | None:
        product = await self.get_product_by_id(product_id)
        if product is None:
            return None
        await self._write_memberships(product_id, category_ids)
        product.category_id = legacy_category_id
        await self.db.commit()
        await self.db.refresh(product, attribute_names=["categories"])
        return product

    async def find_products_by_category(self, category_id: UUID) -> list[Product]:
        stmt = (
            self._product_select()
            .join(product_categories, product_categories.c.product_id == Product.id)
            .where(product_categories.c.category_id == category_id)
            .order_by(Product.created_at)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_recent_products_by_category(self, category_id: UUID, limit: int = 5) -> list[Product]:
        stmt = (
            self._product_select()
            .join(product_categories, product_categories.c.product_id == Product.id)
            .where(
                product_categories.c.category_id == category_id,
                Product.is_active.is_(True),
            )
            .order_by(Product.created_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_products_by_categories(
        self, category_ids: Iterable[UUID], offset: int = 0, limit: int = 20
    ) -> tuple[list[Product], int]:
        ids = list(category_ids)
        if not ids:
            return [], 0
        member_ids = (
            select(product_categories.c.product_id)
            .where(product_categories.c.category_id.in_(ids))
        )
        condition = (Product.is_active.is_(True), Product.id.in_(member_ids))

        total = (await self.db.execute(select(func.count(Product.id)).where(*condition))).scalar_one()
        stmt = (
            self._product_select()
            .where(*condition)
            .order_by(Product.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def _write_memberships(self, product_id: UUID, category_ids: list[UUID]) -> None:
        await self.db.execute(
            delete(product_categories).where(product_categories.c.product_id == product_id)
        )
        if category_ids:
            await self.db.execute(
                insert(product_categories),
                [
                    {"product_id": product_id, "category_id": category_id, "position": position}
                    for position, category_id in enumerate(category_ids)
                ]
            )

    @staticmethod
    def _parent_clause(parent_id: UUID | None):
        if parent_id:
            return Category.parent_id == parent_id
        return Category.parent_id.is_(None)

    @staticmethod
    def _product_select():
        # Reload membership even for instances already in the identity map
        return (
            select(Product)
            .options(selectinload(Product.categories))
            .execution_options(populate_existing=True)
        )
