import asyncio
import uuid
import pytest
from app.core.exceptions import (
    CatalogError,
    CategoryNotFound,
    CircularReference,
    CycleDetected,
    DuplicateSiblingName,
    DuplicateSlug,
    HasChildren,
    HasProducts,
    InvalidName,
    ParentNotFound,
    SelfParent,
)
from app.schemas.category import CategoryBulkFields, CategoryCreate, CategoryUpdate
from app.schemas.product import ProductCreate
from app.services.count_synchronizer import CountSynchronizer
from app.services.tree_mutator import TreeMutator
from tests.fakes import YieldingCatalogRepository


async def create(mutator, name, parent=None, **fields):
    return await mutator.create(CategoryCreate(name=name, parent_id=parent.id if parent else None, **fields))


class TestCreate:
    async def test_creates_with_slug_and_zero_counts(self, mutator):
        category = await create(mutator, "  Engine Parts ", description=" Everything under the hood ")

        assert category.name == "Engine Parts"
        assert category.slug == "engine-parts"
        assert category.description == "Everything under the hood"
        assert category.parent_id is None
        assert category.direct_product_count == 0
        assert category.subtree_product_count == 0

    async def test_case_different_root_is_duplicate(self, mutator):
        await create(mutator, "Engine Parts")
        with pytest.raises(DuplicateSiblingName):
            await create(mutator, "engine parts")

    async def test_same_name_under_other_parent_needs_free_slug(self, mutator):
        cars = await create(mutator, "Cars")
        trucks = await create(mutator, "Trucks")
        await create(mutator, "Filters", cars)

        with pytest.raises(DuplicateSlug):
            await create(mutator, "Filters", trucks)

    async def test_underscore_name_gets_its_own_slug(self, mutator):
        spaced = await create(mutator, "Engine Parts")
        underscored = await create(mutator, "Engine_Parts")
        assert spaced.slug != underscored.slug

    async def test_missing_parent(self, mutator):
        with pytest.raises(ParentNotFound):
            await mutator.create(CategoryCreate(name="Orphan", parent_id=uuid.uuid4()))

    async def test_invalid_name_writes_nothing(self, mutator, repo):
        with pytest.raises(InvalidName):
            await create(mutator, "   ")
        assert repo.categories == {}

    async def test_create_root_ignores_parent(self, mutator):
        parent = await create(mutator, "Cars")
        root = await mutator.create_root(CategoryCreate(name="Boats", parent_id=parent.id))
        assert root.parent_id is None


class TestRenameAndUpdate:
    async def test_rename_updates_slug(self, mutator):
        category = await create(mutator, "Pistns")
        renamed = await mutator.rename(category.id, "Pistons")
        assert renamed.name == "Pistons"
        assert renamed.slug == "pistons"

    async def test_rename_case_only(self, mutator):
        category = await create(mutator, "pistons")
        renamed = await mutator.rename(category.id, "Pistons")
        assert renamed.name == "Pistons"
        assert renamed.slug == "pistons"

    async def test_rename_to_sibling_name(self, mutator):
        await create(mutator, "Pistons")
        rings = await create(mutator, "Rings")
        with pytest.raises(DuplicateSiblingName):
            await mutator.rename(rings.id, "PISTONS")

    async def test_rename_missing(self, mutator):
        with pytest.raises(CategoryNotFound):
            await mutator.rename(uuid.uuid4(), "Anything")

    async def test_update_plain_fields(self, mutator):
        category = await create(mutator, "Pistons")
        updated = await mutator.update(category.id, CategoryUpdate(order=3, seo_title="Pistons", is_active=None))
        assert updated.order == 3
        assert updated.seo_title == "Pistons"
        assert updated.is_active is True

    async def test_set_and_toggle_active(self, mutator):
        category = await create(mutator, "Pistons")
        assert (await mutator.set_active(category.id, False)).is_active is False
        assert (await mutator.toggle_active(category.id)).is_active is True


class TestMove:
    async def test_move_updates_both_parents(self, mutator, products, repo):
        a = await create(mutator, "A")
        d = await create(mutator, "D")
        b = await create(mutator, "B", a)
        await products.create_product(ProductCreate(name="P1", category_ids=[str(b.id)]))
        assert a.subtree_product_count == 1
        before = (b.direct_product_count, b.subtree_product_count)

        moved = await mutator.move(b.id, d.id)

        assert moved.parent_id == d.id
        assert a.subtree_product_count == 0
        assert d.subtree_product_count == 1
        assert (b.direct_product_count, b.subtree_product_count) == before

    async def test_move_to_root(self, mutator):
        a = await create(mutator, "A")
        b = await create(mutator, "B", a)
        assert (await mutator.move(b.id, None)).parent_id is None

    async def test_move_under_descendant(self, mutator):
        a = await create(mutator, "A")
        b = await create(mutator, "B", a)
        c = await create(mutator, "C", b)
        with pytest.raises(CircularReference):
            await mutator.move(a.id, c.id)
        assert a.parent_id is None

    async def test_move_under_self(self, mutator):
        a = await create(mutator, "A")
        with pytest.raises(SelfParent):
            await mutator.move(a.id, a.id)

    async def test_move_to_missing_parent(self, mutator):
        a = await create(mutator, "A")
        with pytest.raises(ParentNotFound):
            await mutator.move(a.id, uuid.uuid4())

    async def test_move_into_name_clash(self, mutator, repo):
        a = await create(mutator, "A")
        await create(mutator, "Filters", a)
        other = repo.add_category("FILTERS", slug="filters-legacy")
        with pytest.raises(DuplicateSiblingName):
            await mutator.move(other.id, a.id)

    async def test_move_over_corrupted_ancestry(self, mutator, repo):
        a = await create(mutator, "A")
        x = repo.add_category("X")
        y = repo.add_category("Y", x)
        x.parent_id = y.id
        with pytest.raises(CycleDetected):
            await mutator.move(a.id, y.id)

    async def test_concurrent_moves_cannot_form_cycle(self):
        repo = YieldingCatalogRepository()
        counts = CountSynchronizer(repo)
        lock = asyncio.Lock()
        first = TreeMutator(repo=repo, counts=counts, lock=lock)
        second = TreeMutator(repo=repo, counts=counts, lock=lock)
        a = repo.add_category("A")
        b = repo.add_category("B")

        outcomes = await asyncio.gather(
            first.move(a.id, b.id), second.move(b.id, a.id), return_exceptions=True
        )

        failures = [outcome for outcome in outcomes if isinstance(outcome, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], CircularReference)
        assert not (a.parent_id == b.id and b.parent_id == a.id)
        assert [a.parent_id, b.parent_id].count(None) == 1


class TestDelete:
    async def test_delete_empty_leaf_recomputes_parent(self, mutator, repo):
        parent = await create(mutator, "Engine Parts")
        leaf = await create(mutator, "Pistons", parent)
        parent.subtree_product_count = 7

        await mutator.delete(leaf.id)

        assert leaf.id not in repo.categories
        assert parent.subtree_product_count == 0

    async def test_delete_with_children(self, mutator):
        parent = await create(mutator, "Engine Parts")
        await create(mutator, "Pistons", parent)
        with pytest.raises(HasChildren):
            await mutator.delete(parent.id)

    async def test_delete_with_products(self, mutator, products):
        leaf = await create(mutator, "Pistons")
        await products.create_product(ProductCreate(name="P1", category_ids=[str(leaf.id)]))
        with pytest.raises(HasProducts):
            await mutator.delete(leaf.id)

    async def test_delete_ignores_stale_counter(self, mutator, repo):
        leaf = await create(mutator, "Pistons")
        leaf.direct_product_count = 3
        await mutator.delete(leaf.id)
        assert leaf.id not in repo.categories

    async def test_delete_referenced_by_inactive_product(self, mutator, repo):
        keep = repo.add_category("Keep")
        leaf = repo.add_category("Gone")
        product = repo.add_product("Old", [leaf, keep], is_active=False)

        with pytest.raises(HasProducts):
            await mutator.delete(leaf.id)

        assert leaf.id in repo.categories
        assert product.category_ids == [leaf.id, keep.id]
        assert product.category_id == leaf.id


class TestMembership:
    async def test_engine_parts_scenario(self, mutator, products):
        engine = await create(mutator, "Engine Parts")
        pistons = await create(mutator, "Pistons", engine)
        p1 = await products.create_product(ProductCreate(name="P1", category_ids=[str(pistons.id)]))

        assert pistons.direct_product_count == 1
        assert engine.subtree_product_count == 1

        await mutator.unlink_product(p1.id, pistons.id)

        assert pistons.direct_product_count == 0
        assert engine.subtree_product_count == 0
        assert p1.category_ids == []
        assert p1.category_id is None

    async def test_link_is_idempotent(self, mutator, repo):
        category = repo.add_category("Pistons")
        product = repo.add_product("P1", [])

        await mutator.link_product(product.id, category.id)
        await mutator.link_product(product.id, category.id)

        assert product.category_ids == [category.id]
        assert product.category_id == category.id
        assert category.direct_product_count == 1

    async def test_unlink_moves_legacy_to_next_member(self, mutator, repo):
        first = repo.add_category("First")
        second = repo.add_category("Second")
        product = repo.add_product("P1", [first, second])

        await mutator.unlink_product(product.id, first.id)

        assert product.category_ids == [second.id]
        assert product.category_id == second.id

    async def test_unlink_non_member_is_noop(self, mutator, repo):
        category = repo.add_category("Pistons")
        product = repo.add_product("P1", [])
        assert (await mutator.unlink_product(product.id, category.id)).category_ids == []

    async def test_reassign_products(self, mutator, repo):
        source = repo.add_category("Source")
        target = repo.add_category("Target")
        other = repo.add_category("Other")
        only_source = repo.add_product("A", [source])
        both = repo.add_product("B", [other, source, target])
        repo.add_product("Hidden", [source], is_active=False)

        result = await mutator.reassign_products(source.id, target.id)

        assert result.modified == 3
        assert result.source_remaining == 0
        assert result.target_total == 2
        assert only_source.category_ids == [target.id]
        assert only_source.category_id == target.id
        assert both.category_ids == [other.id, target.id]
        assert both.category_id == other.id
        assert target.direct_product_count == 2
        assert source.direct_product_count == 0

    async def test_reassign_to_itself(self, mutator, repo):
        source = repo.add_category("Source")
        repo.add_product("A", [source])
        result = await mutator.reassign_products(source.id, source.id)
        assert result.modified == 0
        assert result.source_remaining == result.target_total == 1

    async def test_bulk_link_reports_per_item(self, mutator, repo):
        category = repo.add_category("Pistons")
        fresh = repo.add_product("Fresh", [])
        linked = repo.add_product("Linked", [category])

        result = await mutator.bulk_link_products(
            category.id, [str(fresh.id), str(linked.id), str(uuid.uuid4()), "garbage"]
        )

        assert (result.total, result.linked, result.already_linked, result.errors) == (4, 1, 1, 2)
        assert [item.success for item in result.results] == [True, True, False, False]
        assert category.direct_product_count == 2


class TestBulkUpdate:
    async def test_bulk_update(self, mutator, repo):
        a = repo.add_category("A")
        b = repo.add_category("B")

        result = await mutator.bulk_update_categories(
            [str(a.id), str(b.id), str(uuid.uuid4())], CategoryBulkFields(is_active=False)
        )

        assert result.modified == 2
        assert [item.success for item in result.results] == [True, True, False]
        assert a.is_active is False and b.is_active is False

    async def test_bulk_update_without_fields(self, mutator, repo):
        a = repo.add_category("A")
        with pytest.raises(CatalogError):
            await mutator.bulk_update_categories([str(a.id)], CategoryBulkFields())
