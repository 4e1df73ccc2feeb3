import uuid
import pytest
from app.core.exceptions import CategoryNotFound, InvalidId, ProductNotFound
from app.schemas.product import ProductCreate, ProductUpdate


@pytest.fixture
def tree(repo):
    engine = repo.add_category("Engine Parts")
    pistons = repo.add_category("Pistons", engine)
    brakes = repo.add_category("Brakes")
    return engine, pistons, brakes


async def test_create_normalizes_membership(products, tree):
    engine, pistons, brakes = tree

    product = await products.create_product(ProductCreate(
        name=" Piston kit ",
        category_ids=[str(pistons.id), str(pistons.id), ""],
        category_id=str(brakes.id),
    ))

    assert product.name == "Piston kit"
    assert product.category_ids == [pistons.id, brakes.id]
    assert product.category_id == brakes.id
    assert (pistons.direct_product_count, engine.subtree_product_count, brakes.direct_product_count) == (1, 1, 1)


async def test_create_with_legacy_field_only(products, tree):
    _, pistons, _ = tree
    product = await products.create_product(ProductCreate(name="Piston", category_id=str(pistons.id)))
    assert product.category_ids == [pistons.id]


async def test_create_rejects_unknown_category(products, repo):
    with pytest.raises(CategoryNotFound):
        await products.create_product(ProductCreate(name="Ghost", category_ids=[str(uuid.uuid4())]))
    assert repo.products == {}


async def test_create_rejects_malformed_category(products):
    with pytest.raises(InvalidId):
        await products.create_product(ProductCreate(name="Ghost", category_ids=["abc"]))


async def test_get_missing(products):
    with pytest.raises(ProductNotFound):
        await products.get_product(uuid.uuid4())


async def test_update_replaces_membership(products, tree):
    engine, pistons, brakes = tree
    product = await products.create_product(ProductCreate(name="Kit", category_ids=[str(pistons.id)]))

    product = await products.update_product(product.id, ProductUpdate(category_ids=[str(brakes.id)]))

    assert product.category_ids == [brakes.id]
    assert product.category_id == brakes.id
    assert pistons.direct_product_count == 0
    assert engine.subtree_product_count == 0
    assert brakes.direct_product_count == 1


async def test_update_legacy_field_adds_to_set(products, tree):
    _, pistons, brakes = tree
    product = await products.create_product(ProductCreate(name="Kit", category_ids=[str(pistons.id)]))

    product = await products.update_product(product.id, ProductUpdate(category_id=str(brakes.id)))

    assert product.category_ids == [pistons.id, brakes.id]
    assert product.category_id == brakes.id
    assert brakes.direct_product_count == 1


async def test_deactivate_and_delete_move_counts(products, tree):
    engine, pistons, _ = tree
    product = await products.create_product(ProductCreate(name="Kit", category_ids=[str(pistons.id)]))

    await products.update_product(product.id, ProductUpdate(is_active=False))
    assert engine.subtree_product_count == 0

    await products.update_product(product.id, ProductUpdate(is_active=True, name="Kit v2"))
    assert engine.subtree_product_count == 1
    assert product.name == "Kit v2"

    deleted = await products.delete_product(product.id)
    assert deleted.is_active is False
    assert pistons.direct_product_count == 0


async def test_list_products_by_category(products, repo, tree):
    engine, pistons, _ = tree
    hidden = repo.add_category("Hidden", engine, is_active=False)
    for index in range(3):
        repo.add_product(f"Piston {index}", [pistons])
    repo.add_product("Engine", [engine])
    repo.add_product("Secret", [hidden])

    direct = await products.list_products_by_category(engine.id)
    assert direct.total == 1

    page = await products.list_products_by_category(engine.id, include_subcategories=True, page=2, limit=3)
    assert page.total == 4
    assert page.total_pages == 2
    assert [p.name for p in page.products] == ["Piston 0"]

    with pytest.raises(CategoryNotFound):
        await products.list_products_by_category(uuid.uuid4())
